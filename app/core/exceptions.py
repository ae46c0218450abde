# app/core/exceptions.py

from fastapi import HTTPException, status

class NotFoundException(HTTPException):
    def __init__(self, detail: str = "Recurso no encontrado"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class BadRequestException(HTTPException):
    def __init__(self, detail: str = "Solicitud inválida"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class ConflictException(HTTPException):
    def __init__(self, detail: str = "El recurso ya existe"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

# =======================================================
# EXCEPCIONES DE LA CAPA DE SINCRONIZACIÓN
# =======================================================
class ContentSyncError(Exception):
    """
    Fallo al escribir el contenido en su almacenamiento principal
    (archivo JSON o base de datos).
    """
    def __init__(self, message: str = "Error al sincronizar el contenido"):
        self.message = message
        super().__init__(self.message)
