"""
Unit tests for transaction_scope and stored file removal
"""
import pytest

from w3pets.database.models import Account
from w3pets.services.file_storage import FileStorage, UploadedFile
from w3pets.utils.config import Settings
from w3pets.utils.transaction import transaction_scope


def _account(email="a@x.com", username="ada"):
    return Account(email=email, username=username, password_hash="x")


class TestTransactionScope:
    """Commit on success, roll back and re-raise on error"""

    def test_commits_on_success(self, db_session):
        with transaction_scope(db_session, "account creation"):
            db_session.add(_account())

        db_session.rollback()
        assert db_session.query(Account).count() == 1

    def test_rolls_back_and_reraises(self, db_session):
        with pytest.raises(RuntimeError):
            with transaction_scope(db_session, "account creation"):
                db_session.add(_account())
                db_session.flush()
                raise RuntimeError("boom")

        assert db_session.query(Account).count() == 0

    def test_failed_commit_rolls_back(self, db_session):
        db_session.add(_account())
        db_session.commit()

        with pytest.raises(Exception):
            with transaction_scope(db_session, "account creation"):
                db_session.add(_account(email="b@x.com"))  # duplicate username

        assert db_session.query(Account).count() == 1


class TestDeleteStoredFile:
    """FileStorage.delete_file"""

    @pytest.fixture
    def storage(self, tmp_path):
        return FileStorage(Settings(upload_dir=str(tmp_path), media_base_url="http://testserver/media"))

    def test_deletes_stored_file(self, storage, tmp_path):
        url = storage.put_file(UploadedFile("brand_image", "brand.png", "image/png", b"png"))

        assert storage.delete_file(url) is True
        assert list(tmp_path.rglob("*.*")) == []

    def test_missing_file(self, storage):
        assert storage.delete_file("http://testserver/media/brand_image/gone.png") is False

    def test_foreign_url_is_ignored(self, storage):
        assert storage.delete_file("http://elsewhere/media/brand_image/x.png") is False

    def test_path_outside_media_directory_is_ignored(self, storage, tmp_path):
        outside = tmp_path.parent / "keep.txt"
        outside.write_text("keep")

        assert storage.delete_file("http://testserver/media/../keep.txt") is False
        assert outside.exists()
