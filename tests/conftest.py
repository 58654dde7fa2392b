"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
import requests
from googleapiclient.errors import HttpError

# Make the root module importable without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from villager_birthdays import Settings  # noqa: E402


def http_error(status=500, reason="Backend Error"):
    return HttpError(SimpleNamespace(status=status, reason=reason), b"boom")


class FakeRequest:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error:
            raise self.error
        return self.result


class FakeEvents:
    def __init__(self, existing=None, fail_on=None):
        self.existing = existing or {}
        self.fail_on = fail_on
        self.calls = []

    def _request(self, name, result):
        if name == self.fail_on:
            return FakeRequest(error=http_error())
        return FakeRequest(result)

    def list(self, **kwargs):
        self.calls.append(("list", kwargs))
        uid = kwargs.get("iCalUID")
        items = [self.existing[uid]] if uid in self.existing else []
        return self._request("list", {"items": items})

    def insert(self, **kwargs):
        self.calls.append(("insert", kwargs))
        inserted = sum(1 for name, _ in self.calls if name == "insert")
        return self._request("insert", {"id": f"event{inserted}", **kwargs["body"]})

    def patch(self, **kwargs):
        self.calls.append(("patch", kwargs))
        return self._request("patch", {"id": kwargs["eventId"]})

    def names(self):
        return [name for name, _ in self.calls]

    def bodies(self, name):
        return [kwargs.get("body") for n, kwargs in self.calls if n == name]


class FakeCalendar:
    def __init__(self, **kwargs):
        self._events = FakeEvents(**kwargs)

    def events(self):
        return self._events


class FakeFiles:
    def __init__(self, pages, error=None):
        self.pages = pages
        self.error = error
        self.list_calls = []

    def list(self, **kwargs):
        self.list_calls.append(kwargs)
        if self.error:
            return FakeRequest(error=self.error)
        return FakeRequest(self.pages[len(self.list_calls) - 1])

    def get(self, fileId):
        return FakeRequest({"id": fileId, "name": "Villager Images"})


class FakeDrive:
    def __init__(self, pages=None, error=None):
        self._files = FakeFiles(pages or [{"files": []}], error)

    def files(self):
        return self._files


class FakeResponse:
    def __init__(self, text="", content=b"", status_code=200):
        self.text = text
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Answers GETs from a url -> FakeResponse map; anything else is a 404."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.headers = {}
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        return self.routes.get(url, FakeResponse(status_code=404))


def file_page(file_name):
    return f"""
    <html><body>
      <a href="/wiki/File:{file_name}">File:{file_name}</a>
      <img src="https://dodo.ac/np/images/thumb/a/ab/{file_name}/200px-{file_name}">
      <a href="https://dodo.ac/np/images/a/ab/{file_name}">Original file</a>
    </body></html>
    """


def image_routes(file_name, data=b"\x89PNG fake"):
    return {
        f"https://nookipedia.com/wiki/File:{file_name}": FakeResponse(text=file_page(file_name)),
        f"https://dodo.ac/np/images/a/ab/{file_name}": FakeResponse(content=data),
    }


def villager_page(birthday_cell):
    return f"""
    <table class="infobox">
      <tr><th>Species</th><td class="Infobox-villager-species">Cub</td></tr>
      <tr><th>Birthday</th><td class="Infobox-villager-birthday" style="x">{birthday_cell}</td></tr>
    </table>
    """


@pytest.fixture
def settings(tmp_path):
    images = tmp_path / "imgs"
    images.mkdir()
    return Settings(
        root=str(tmp_path),
        data_path=str(tmp_path / "acVillagerData.txt"),
        images_dir=str(images),
    )


@pytest.fixture
def write_page(tmp_path):
    def _write(key, birthday_cell):
        path = tmp_path / f"{key}.html"
        path.write_text(villager_page(birthday_cell), encoding="utf-8")
        return path

    return _write
