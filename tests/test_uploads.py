import pytest
import requests
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

pytestmark = pytest.mark.django_db


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


@pytest.fixture
def imagekit(settings, monkeypatch):
    settings.IMAGEKIT_PRIVATE_KEY = "private_test"
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        if "deleteByFileIds" in url:
            return FakeResponse({"successfullyDeletedFileIds": kwargs["json"]["fileIds"]})
        name = kwargs["data"]["fileName"]
        return FakeResponse({"fileId": f"id-{name}", "name": name, "url": f"https://ik.imagekit.io/demo/{name}"})

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user)
    return client


def _image(name):
    return SimpleUploadedFile(name, b"\x89PNG fake", content_type="image/png")


def test_upload_returns_hosted_files(staff_client, imagekit):
    response = staff_client.post(reverse("uploads:upload"), {"files": [_image("a.png"), _image("b.png")]})

    assert response.status_code == 200
    assert response.json() == [
        {"id": "id-a.png", "name": "a.png", "url": "https://ik.imagekit.io/demo/a.png"},
        {"id": "id-b.png", "name": "b.png", "url": "https://ik.imagekit.io/demo/b.png"},
    ]
    url, kwargs = imagekit[0]
    assert kwargs["auth"] == ("private_test", "")


def test_delete_files(staff_client, imagekit):
    response = staff_client.delete(reverse("uploads:upload") + "?file_ids=a,b,")

    assert response.json() == {"message": "file deleted"}
    assert imagekit[0][1]["json"] == {"fileIds": ["a", "b"]}


def test_upload_needs_files(staff_client, imagekit):
    response = staff_client.post(reverse("uploads:upload"))
    assert response.status_code == 400


def test_customers_cannot_upload(client, customer, imagekit):
    client.force_login(customer)

    response = client.post(reverse("uploads:upload"), {"files": [_image("a.png")]})

    assert response.status_code == 403
    assert imagekit == []


def test_missing_key_reports_error(staff_client, settings):
    settings.IMAGEKIT_PRIVATE_KEY = ""

    response = staff_client.post(reverse("uploads:upload"), {"files": [_image("a.png")]})

    assert response.status_code == 500
    assert "IMAGEKIT_PRIVATE_KEY" in response.json()["error"]


def test_host_failure_reports_error(staff_client, settings, monkeypatch):
    settings.IMAGEKIT_PRIVATE_KEY = "private_test"
    monkeypatch.setattr(requests, "post", lambda url, **kwargs: FakeResponse({}, status_code=502))

    response = staff_client.post(reverse("uploads:upload"), {"files": [_image("a.png")]})

    assert response.status_code == 500
    assert "a.png" in response.json()["error"]


class BrokenJsonResponse(FakeResponse):
    def json(self):
        raise ValueError("Expecting value")


@pytest.mark.parametrize("reply", [BrokenJsonResponse({}), FakeResponse({"fileId": "abc"})])
def test_unreadable_host_reply_is_a_json_error(staff_client, settings, monkeypatch, reply):
    settings.IMAGEKIT_PRIVATE_KEY = "private_test"
    monkeypatch.setattr(requests, "post", lambda url, **kwargs: reply)

    response = staff_client.post(reverse("uploads:upload"), {"files": [_image("a.png")]})

    assert response.status_code == 500
    assert response["Content-Type"] == "application/json"
    assert "a.png" in response.json()["error"]
