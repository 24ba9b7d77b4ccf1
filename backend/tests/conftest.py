import os
import tempfile
from io import BytesIO

# settings are read at import time, so point them at throwaway locations first
_tmp = tempfile.mkdtemp(prefix="easyprint-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp, "test.db")
os.environ["MEDIA_ROOT"] = os.path.join(_tmp, "media")

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlmodel import SQLModel

from easyprint.api import checkout as checkout_api
from easyprint.db.session import get_engine
from easyprint.main import app

CUSTOMER = {"X-User-Email": "juan@example.com"}
OTHER_CUSTOMER = {"X-User-Email": "maria@example.com"}
STAFF = {"X-User-Email": "staff@easyprint.com", "X-User-Role": "STAFF"}
ADMIN = {"X-User-Email": "admin@easyprint.com", "X-User-Role": "ADMIN"}


def make_pdf(pages: int) -> bytes:
    """Smallest well-formed PDF with ``pages`` blank pages."""
    kids = " ".join(f"{3 + i} 0 R" for i in range(pages))
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {pages} >>",
    ]
    objects += ["<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>"] * pages

    out = b"%PDF-1.4\n"
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{num} 0 obj\n{body}\nendobj\n".encode()
    xref = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref}\n%%EOF\n".encode()
    return out


def make_png(size=(32, 32)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def media_root(tmp_path):
    return str(tmp_path / "media")


@pytest.fixture
def client():
    engine = get_engine()
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    checkout_api._sessions.clear()
    with TestClient(app) as c:
        yield c
