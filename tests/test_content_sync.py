import json
from datetime import datetime

import pytest

from app.core.cache import CacheKeys
from app.core.core import isoformat
from app.core.storage import StorageMode
from app.models.department import Department
from app.models.job_opening import JobOpening
from app.models.page import Page, CONTENT_DATA_PAGE_ID
from app.schemas.page import PageCreate
from app.services import page_service


def snapshot_pages(db_session):
    db_session.expire_all()
    return [
        (p.id, p.page_id, p.title, p.description, p.is_published, p.content, p.last_modified, p.updated_at)
        for p in db_session.query(Page).order_by(Page.page_id).all()
    ]


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestUpdateContentData:
    def test_merges_into_file(self, sync_service, content_dir, write_json):
        content_file = content_dir / "content-data.json"
        write_json(content_file, {"services": ["a"], "benefits": ["b"]})

        merged = sync_service.update_content_data({"services": ["c"]})

        assert merged == {"services": ["c"], "benefits": ["b"]}
        assert read_json(content_file) == merged

    def test_fans_out_jobs_and_departments(self, sync_service, db_session):
        sync_service.update_content_data({
            "jobOpenings": [
                {
                    "id": "senior-accountant",
                    "title": "Senior Accountant",
                    "department": "finance",
                    "jobType": "Contract",
                    "requirements": ["CPA", 3],
                    "published": False,
                    "applicationDeadline": "2025-03-01T00:00:00.000Z",
                },
                {"title": "No id, skipped"},
            ],
            "departments": [{"key": "finance", "label": "Finance"}, {"key": "customer-success"}],
        })

        jobs = db_session.query(JobOpening).all()
        assert len(jobs) == 1
        assert jobs[0].type == "Contract"
        assert jobs[0].requirements == ["CPA"]
        assert jobs[0].is_active is False
        assert jobs[0].location == "Remote"
        assert jobs[0].application_deadline == datetime(2025, 3, 1)

        departments = {d.key: d.label for d in db_session.query(Department).all()}
        assert departments == {"finance": "Finance", "customer-success": "Customer Success"}

    def test_department_fan_out_removes_dropped_keys(self, sync_service, db_session):
        sync_service.update_content_data({"departments": [{"key": "finance"}, {"key": "legal"}]})
        sync_service.update_content_data({"departments": [{"key": "finance", "label": "Money"}]})

        departments = {d.key: d.label for d in db_session.query(Department).all()}
        assert departments == {"finance": "Money"}

    def test_invalidates_content_cache_keys(self, sync_service, cache):
        cache.set(CacheKeys.content("services", "all"), [1])
        cache.set(CacheKeys.page("home"), {})

        sync_service.update_content_data({"services": []})

        assert not cache.has(CacheKeys.content("services", "all"))
        assert cache.has(CacheKeys.page("home"))

    def test_refreshes_existing_database_mirror(self, sync_service, reader, db_session):
        reader.write_database(db_session, {"services": ["old"]})
        sync_service.update_content_data({"services": ["new"]})
        assert reader.read_database(db_session) == {"services": ["new"]}

    @pytest.mark.parametrize("storage_mode", [StorageMode.DATABASE])
    def test_database_mode_writes_sentinel_row_only(self, sync_service, reader, content_dir, write_json, db_session):
        content_file = content_dir / "content-data.json"
        write_json(content_file, {"services": ["file"], "benefits": ["b"]})

        sync_service.update_content_data({"services": ["db"]})

        assert read_json(content_file) == {"services": ["file"], "benefits": ["b"]}
        assert reader.read_database(db_session) == {"services": ["db"], "benefits": ["b"]}
        assert reader.read_content_data(db_session)["services"] == ["db"]


class TestUpdatePageContent:
    def test_merges_into_page_file(self, sync_service, write_page, content_dir, cache):
        write_page("home", hero={"title": "Old"}, footer={"text": "keep"})
        cache.set(CacheKeys.page("home"), {"stale": True})

        assert sync_service.update_page_content("home", {"hero": {"title": "New"}}) is True

        data = read_json(content_dir / "pages" / "home.json")
        assert data["hero"] == {"title": "New"}
        assert data["footer"] == {"text": "keep"}
        assert data["lastModified"] != "2025-01-15T09:00:00.000Z"
        assert not cache.has(CacheKeys.page("home"))

    def test_write_failure_is_not_fatal(self, sync_service, content_dir):
        # Un directorio con el nombre del archivo hace fallar la escritura
        (content_dir / "pages" / "broken.json").mkdir()
        assert sync_service.update_page_content("broken", {"hero": {}}) is False

    @pytest.mark.parametrize("storage_mode", [StorageMode.DATABASE])
    def test_database_mode_does_not_touch_disk(self, sync_service, content_dir):
        assert sync_service.update_page_content("home", {"hero": {}}) is True
        assert not (content_dir / "pages" / "home.json").exists()


class TestMirrorPage:
    def test_writes_row_as_document(self, sync_service, db_session, content_dir, cache):
        page = page_service.create_page(
            db_session, PageCreate(pageId="careers", title="Careers", content={"hero": {"title": "Join"}})
        )
        cache.set(CacheKeys.page("careers"), {"stale": True})

        assert sync_service.mirror_page(page) is True

        assert read_json(content_dir / "pages" / "careers.json") == {
            "hero": {"title": "Join"},
            "title": "Careers",
            "description": "",
            "lastModified": isoformat(page.last_modified),
            "published": False,
            "pageId": "careers",
        }
        assert not cache.has(CacheKeys.page("careers"))
        assert sync_service.validate_data_consistency().consistent is True

    @pytest.mark.parametrize("storage_mode", [StorageMode.DATABASE])
    def test_database_mode_does_not_touch_disk(self, sync_service, db_session, content_dir):
        page = page_service.create_page(db_session, PageCreate(pageId="careers", title="Careers"))
        assert sync_service.mirror_page(page) is True
        assert not (content_dir / "pages" / "careers.json").exists()


class TestJsonToDatabase:
    def test_creates_page_rows(self, sync_service, write_page, db_session):
        write_page("home", hero={"title": "Welcome"})
        write_page("about", published=False)

        report = sync_service.sync_all_json_to_database()

        assert (report.processed, report.created, report.failed) == (2, 2, 0)
        home = db_session.query(Page).filter(Page.page_id == "home").one()
        assert home.title == "Home"
        assert home.is_published is True
        assert home.content["hero"] == {"title": "Welcome"}
        assert home.last_modified == datetime(2025, 1, 15, 9, 0, 0)

    def test_is_idempotent(self, sync_service, write_page, db_session):
        write_page("home", hero={"title": "Welcome"})
        write_page("about")
        write_page("services", items=[1, 2, 3])

        sync_service.sync_all_json_to_database()
        before = snapshot_pages(db_session)

        report = sync_service.sync_all_json_to_database()
        after = snapshot_pages(db_session)

        assert report.unchanged == 3
        assert report.created == report.updated == 0
        assert after == before
        assert len(after) == 3

    def test_file_without_last_modified_is_idempotent(self, sync_service, content_dir, write_json, db_session):
        write_json(content_dir / "pages" / "contact.json", {"title": "Contact"})

        sync_service.sync_all_json_to_database()
        before = snapshot_pages(db_session)
        report = sync_service.sync_all_json_to_database()

        assert report.unchanged == 1
        assert snapshot_pages(db_session) == before
        assert before[0][1] == "contact"

    def test_updates_changed_files(self, sync_service, write_page, db_session):
        write_page("home")
        sync_service.sync_all_json_to_database()
        write_page("home", title="Home v2", lastModified="2025-02-01T00:00:00.000Z")

        report = sync_service.sync_all_json_to_database()

        assert report.updated == 1
        assert db_session.query(Page).filter(Page.page_id == "home").one().title == "Home v2"

    def test_unreadable_file_is_counted_and_skipped(self, sync_service, write_page, content_dir, db_session):
        write_page("home")
        (content_dir / "pages" / "broken.json").write_text("{oops", encoding="utf-8")

        report = sync_service.sync_all_json_to_database()

        assert report.processed == 2
        assert report.failed == 1
        assert report.created == 1
        assert "broken.json" in report.errors[0]

    def test_sentinel_file_is_ignored(self, sync_service, write_page, db_session):
        write_page(CONTENT_DATA_PAGE_ID)
        report = sync_service.sync_all_json_to_database()
        assert report.processed == 0


class TestDatabaseToJson:
    def test_round_trip_preserves_content(self, sync_service, db_session, content_dir):
        content = {
            "pageId": "home",
            "title": "Home",
            "description": "Landing page",
            "lastModified": "2025-01-15T09:00:00.000Z",
            "published": True,
            "hero": {"title": "Hi", "items": [1, 2.5, "x", None, {"flag": False}]},
        }
        db_session.add(Page(
            page_id="home",
            title="Home",
            description="Landing page",
            is_published=True,
            content=content,
            last_modified=datetime(2025, 1, 15, 9, 0, 0),
        ))
        db_session.commit()
        before = snapshot_pages(db_session)

        report = sync_service.sync_database_to_json()
        assert report.created == 1
        assert read_json(content_dir / "pages" / "home.json") == content

        sync_service.sync_all_json_to_database()
        assert snapshot_pages(db_session) == before

    @pytest.mark.parametrize("content", [{"hero": {"title": "Hi"}}, None])
    def test_round_trip_of_page_created_through_service(self, sync_service, db_session, content):
        page_service.create_page(db_session, PageCreate(pageId="home", title="Home", content=content))
        before = snapshot_pages(db_session)

        sync_service.sync_database_to_json()
        report = sync_service.sync_all_json_to_database()

        assert report.unchanged == 1
        assert report.updated == 0
        assert snapshot_pages(db_session) == before

    def test_columns_win_over_stale_content_metadata(self, sync_service, db_session, content_dir):
        db_session.add(Page(page_id="home", title="New title", content={"title": "Old title", "hero": {}},
                            last_modified=datetime(2025, 1, 1)))
        db_session.commit()

        sync_service.sync_database_to_json()

        assert read_json(content_dir / "pages" / "home.json")["title"] == "New title"

    def test_skips_sentinel_row(self, sync_service, reader, db_session, content_dir):
        reader.write_database(db_session, {"services": []})
        report = sync_service.sync_database_to_json()
        assert report.processed == 0
        assert not (content_dir / "pages" / f"{CONTENT_DATA_PAGE_ID}.json").exists()

    def test_fills_page_fields_when_content_is_empty(self, sync_service, db_session, content_dir):
        db_session.add(Page(page_id="about", title="About", description="", content=None,
                            last_modified=datetime(2025, 1, 1)))
        db_session.commit()

        sync_service.sync_database_to_json()

        data = read_json(content_dir / "pages" / "about.json")
        assert data == {
            "pageId": "about",
            "title": "About",
            "description": "",
            "lastModified": "2025-01-01T00:00:00.000Z",
            "published": False,
        }

    @pytest.mark.parametrize("storage_mode", [StorageMode.DATABASE])
    def test_skipped_in_database_mode(self, sync_service, db_session, content_dir):
        db_session.add(Page(page_id="home", title="Home", content={"pageId": "home"}))
        db_session.commit()

        report = sync_service.sync_database_to_json()

        assert report.skipped is True
        assert not (content_dir / "pages" / "home.json").exists()


class TestValidateConsistency:
    def test_page_only_in_database(self, sync_service, db_session):
        db_session.add(Page(page_id="home", title="Home", content={"pageId": "home"}))
        db_session.commit()

        result = sync_service.validate_data_consistency()

        assert result.consistent is False
        assert any("'home'" in issue for issue in result.issues)

    def test_page_only_in_json(self, sync_service, write_page):
        write_page("about")
        result = sync_service.validate_data_consistency()
        assert result.consistent is False
        assert any("'about'" in issue for issue in result.issues)

    def test_consistent_after_sync(self, sync_service, write_page):
        write_page("home")
        write_page("about")
        sync_service.sync_all_json_to_database()

        result = sync_service.validate_data_consistency()

        assert result.consistent is True
        assert result.issues == []

    def test_detects_title_and_date_drift(self, sync_service, write_page, db_session):
        write_page("home")
        sync_service.sync_all_json_to_database()
        page = db_session.query(Page).filter(Page.page_id == "home").one()
        page.title = "Changed in admin"
        page.last_modified = datetime(2025, 2, 1)
        db_session.commit()

        result = sync_service.validate_data_consistency()

        assert result.consistent is False
        assert len(result.issues) == 2

    def test_does_not_mutate(self, sync_service, write_page, db_session, content_dir):
        write_page("home")
        db_session.add(Page(page_id="about", title="About", content={"pageId": "about"}))
        db_session.commit()
        before_db = snapshot_pages(db_session)
        before_files = sorted(p.name for p in (content_dir / "pages").iterdir())

        sync_service.validate_data_consistency()

        assert snapshot_pages(db_session) == before_db
        assert sorted(p.name for p in (content_dir / "pages").iterdir()) == before_files
