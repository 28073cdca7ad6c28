import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image, ImageDraw
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from signpad.config import Settings, get_settings
from signpad.database import get_db, init_db
from signpad.main import app


def make_png(size=(64, 32)) -> bytes:
    img = Image.new("RGBA", size, (0, 0, 0, 0))
    ImageDraw.Draw(img).line((2, 2, size[0] - 3, size[1] - 3), fill=(0, 0, 128, 255), width=2)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(raw: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        db_path=tmp_path / "signpad.sqlite",
        upload_path=tmp_path / "uploads" / "signatures",
        log_dir=tmp_path / "logs",
        log_submissions=False,
    )


@pytest.fixture
def upload_dir(test_settings):
    test_settings.upload_path.mkdir(parents=True, exist_ok=True)
    return test_settings.upload_path


@pytest.fixture
def test_db(test_settings):
    engine = create_engine(
        f"sqlite:///{test_settings.db_path}",
        connect_args={"check_same_thread": False},
    )
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    init_db(test_settings.db_path)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestSession
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def client(test_settings, test_db):
    app.dependency_overrides[get_settings] = lambda: test_settings
    c = TestClient(app)
    yield c


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_url(png_bytes):
    return to_data_url(png_bytes)
