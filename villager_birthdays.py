#!/usr/bin/env python3
"""
Nookipedia villager birthday importer.

What it does
- Reads the villager roster, one villager per line:
    <key>,<display name>,<image file name>
- For every villager:
  1) Reads the cached wiki page <root>/<key>.html and pulls the birthday
     ("January 3") out of the villager infobox.
  2) Downloads the villager's image from the wiki file page:
       https://nookipedia.com/wiki/File:<image file name>
     and stores it as <images>/<key>.png (skipped if it is already there).
  3) Creates a yearly, all-day, non-blocking event on the target Google Calendar:
       "Bob's Birthday" / "It's Bob's birthday today!\nhttps://nookipedia.com/wiki/bob"
     and attaches the matching image from a Google Drive folder if one exists
     (Drive files are matched to villagers by file name minus extension).

Notes / assumptions
- A page without a birthday in its infobox is not an error; the villager is
  reported and skipped.
- Anything else that goes wrong (unreadable files, a day that is not a number,
  a failed download, a Google API error) stops the run. Villagers handled
  before the failure keep their events and images.
- Each event carries a deterministic iCalUID per villager, so re-running does
  not create a second copy of an event that is already on the calendar
  (unless --allow-duplicates is given).
- Do not run two imports against the same folders/calendar at the same time.
"""

from __future__ import annotations

import argparse
import dataclasses
import enum
import html
import json
import logging
import os
import re
import sys
from datetime import date, timedelta
from typing import Dict, FrozenSet, List, Optional, Tuple
from urllib.parse import unquote, urljoin, urlsplit

import requests
from bs4 import BeautifulSoup
from dateutil import parser as dateparser

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.transport.requests import Request
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError


SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/drive.readonly",
]

LINK_BASE = "https://nookipedia.com/wiki/"
REFERENCE_YEAR = 2020  # leap year, so February 29 birthdays are valid
TIME_ZONE = "America/Toronto"
DRY_RUN_EVENT_ID = "-1"

DRIVE_PAGE_SIZE = 10
DRIVE_FIELDS = "nextPageToken, files(id, name, webViewLink, iconLink, mimeType)"
EXTENSION_LENGTH = 4  # ".png"

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; rv:68.0) Gecko/20100101 Firefox/68.0"

MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

BIRTHDAY_RE = re.compile(
    r"Infobox-villager-birthday.*?>(?:<a.*?>)?(.*?)(?:</a>|</td)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
FOOTNOTE_MARKER = "<sup"

log = logging.getLogger("villager_birthdays")


# -----------------------------
# Errors
# -----------------------------

class BirthdayError(Exception):
    """Base class for errors that stop an import run."""


class MalformedInputError(BirthdayError):
    """Local data is present but cannot be understood (roster line, day number, JSON id file)."""


class IOFailureError(BirthdayError):
    """A file, the wiki, or a Google API could not be read from or written to."""


# -----------------------------
# Data
# -----------------------------

@dataclasses.dataclass(frozen=True)
class RosterEntry:
    key: str
    display_name: str
    image_name: str


@dataclasses.dataclass(frozen=True)
class Birthday:
    month: int
    day: int

    def __str__(self) -> str:
        return f"{self.month:02d}-{self.day:02d}"

    @property
    def well_formed(self) -> bool:
        """Only "MM-DD" birthdays become events; a three-digit day does not fit."""
        return len(str(self)) == 5

    def on(self, year: int) -> date:
        text = f"{year:04d}-{self}"
        try:
            return dateparser.isoparse(text).date()
        except ValueError as e:
            raise MalformedInputError(f'Unable to parse "{text}": {e}') from e


@dataclasses.dataclass(frozen=True)
class Settings:
    root: str = "."
    data_path: str = "acVillagerData.txt"
    images_dir: str = "imgs"
    credentials_path: str = "credentials.json"
    token_path: str = "token.json"
    calendar_file: str = "calendarid.json"
    folder_file: str = "folderid.json"
    link_base: str = LINK_BASE
    year: int = REFERENCE_YEAR
    time_zone: str = TIME_ZONE
    dry_run: bool = False
    one_run: bool = False
    allow_duplicates: bool = False
    verbose: bool = False

    def page_path(self, key: str) -> str:
        return os.path.join(self.root, f"{key}.html")

    def wiki_link(self, key: str) -> str:
        return self.link_base + key


# -----------------------------
# Birthday extraction
# -----------------------------

def extract_birthday(text: str) -> Optional[Birthday]:
    """
    Finds the birthday in a cached villager page, e.g. the "March 3" in:
      <td class="Infobox-villager-birthday"><a href="/wiki/March_3">March 3</a><sup>[1]</sup></td>

    Returns None when the page has no birthday (no infobox cell, or a cell that
    is not "<Month> <day>"). Raises MalformedInputError when the day is not a
    number. The month and day are not checked here: an unknown month becomes 0
    and Birthday.on rejects it, along with days the month does not have.
    """
    m = BIRTHDAY_RE.search(text)
    if not m:
        return None

    words = m.group(1)
    cut = words.find(FOOTNOTE_MARKER)
    if cut >= 0:
        words = words[:cut]

    parts = words.strip().split(" ")
    if len(parts) != 2:
        log.warning("Expected '<month> <day>' birthday, found %r", parts)
        return None

    month_word, day_word = parts
    month = MONTHS.get(month_word.lower(), 0)
    if not re.fullmatch(r"[+-]?[0-9]+", day_word):
        raise MalformedInputError(f"Birthday day {day_word!r} is not a number")
    day = int(day_word, 10)

    return Birthday(month=month, day=day)


def read_birthday(page_path: str) -> Optional[Birthday]:
    try:
        with open(page_path, encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        raise IOFailureError(f"Unable to read cached page {page_path}: {e}") from e
    return extract_birthday(text)


# -----------------------------
# Roster
# -----------------------------

def load_roster(path: str) -> Dict[str, RosterEntry]:
    """
    Reads "<key>,<display name>,<image file name>" lines. There is no quoting,
    so display names cannot contain commas; extra fields are ignored.
    """
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise IOFailureError(f"Unable to read villager data {path}: {e}") from e

    roster: Dict[str, RosterEntry] = {}
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        fields = line.split(",")
        if len(fields) < 3:
            raise MalformedInputError(f"{path}:{lineno}: expected key,name,image but got {line!r}")
        key, name, image = fields[0], fields[1], fields[2]
        if key in roster:
            log.warning("%s:%d: villager %r listed twice, using the later line", path, lineno, key)
        roster[key] = RosterEntry(key=key, display_name=name, image_name=image)
    return roster


# -----------------------------
# Local images
# -----------------------------

@dataclasses.dataclass(frozen=True)
class DownloadedSet:
    """Villager keys whose image is already in the image folder."""

    keys: FrozenSet[str] = frozenset()

    @classmethod
    def from_directory(cls, images_dir: str) -> "DownloadedSet":
        try:
            os.makedirs(images_dir, exist_ok=True)
            names = os.listdir(images_dir)
        except OSError as e:
            raise IOFailureError(f"Unable to list images in {images_dir}: {e}") from e
        return cls(frozenset(n[:-EXTENSION_LENGTH] for n in names))

    def already_have(self, key: str) -> bool:
        return key in self.keys

    def added(self, key: str) -> "DownloadedSet":
        return DownloadedSet(self.keys | {key})


def _file_basename(link: str) -> str:
    name = unquote(urlsplit(link).path.rsplit("/", 1)[-1])
    return name.replace(" ", "_")


class ImageDownloader:
    def __init__(self, images_dir: str, link_base: str = LINK_BASE,
                 session: Optional[requests.Session] = None, timeout: int = 30) -> None:
        self.images_dir = images_dir
        self.file_link_base = link_base + "File:"
        self.timeout = timeout
        self.s = session if session is not None else requests.Session()
        self.s.headers.update({"User-Agent": USER_AGENT})

    def image_path(self, key: str) -> str:
        return os.path.join(self.images_dir, f"{key}.png")

    def retrieve(self, key: str, image_name: str, downloaded: DownloadedSet) -> Tuple[str, DownloadedSet]:
        """
        Makes sure <images>/<key>.png exists and returns its path together with
        the updated DownloadedSet. Nothing is fetched if `downloaded` already has
        the key.
        """
        final_path = self.image_path(key)
        if downloaded.already_have(key):
            return final_path, downloaded

        clean_name = os.path.basename(unquote(image_name))
        page_url = self.file_link_base + image_name
        try:
            file_url = self.find_file_url(page_url, clean_name)
            log.debug("Fetching %s", file_url)
            r = self.s.get(file_url, timeout=self.timeout)
            r.raise_for_status()

            fetched_path = os.path.join(self.images_dir, clean_name)
            with open(fetched_path, "wb") as f:
                f.write(r.content)
            os.replace(fetched_path, final_path)
        except (requests.RequestException, OSError) as e:
            raise IOFailureError(f"Unable to download {clean_name} for {key}: {e}") from e

        log.info("Downloaded %s -> %s", clean_name, final_path)
        return final_path, downloaded.added(key)

    def find_file_url(self, page_url: str, file_name: str) -> str:
        """
        Returns the first link on the wiki file page that points at the image
        itself (its last path segment starts with the file name). Thumbnails are
        prefixed ("200px-Bob.png") and the file page links ("File:Bob.png") are
        not, so neither matches.
        """
        r = self.s.get(page_url, timeout=self.timeout)
        r.raise_for_status()
        soup = BeautifulSoup(r.text, "html.parser")

        wanted = file_name.replace(" ", "_")
        for tag in soup.find_all(["a", "img"]):
            link = tag.get("href") if tag.name == "a" else tag.get("src")
            if link and _file_basename(link).startswith(wanted):
                return urljoin(page_url, link)
        raise IOFailureError(f"No link to {file_name} on {page_url}")


# -----------------------------
# Google Drive attachments
# -----------------------------

@dataclasses.dataclass(frozen=True)
class DriveAttachment:
    title: str
    file_id: str
    file_url: str
    icon_link: str
    mime_type: str

    @classmethod
    def from_drive_file(cls, f: Dict[str, str]) -> "DriveAttachment":
        return cls(
            title=f["name"],
            file_id=f["id"],
            file_url=f.get("webViewLink", ""),
            icon_link=f.get("iconLink", ""),
            mime_type=f.get("mimeType", ""),
        )

    def to_event_attachment(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "fileId": self.file_id,
            "fileUrl": self.file_url,
            "iconLink": self.icon_link,
            "mimeType": self.mime_type,
        }


def describe_folder(drive, folder_id: str) -> str:
    try:
        folder = drive.files().get(fileId=folder_id).execute()
    except HttpError as e:
        raise IOFailureError(f"Unable to get Drive folder {folder_id}: {e}") from e
    return folder.get("name", folder_id)


def load_drive_attachments(drive, folder_id: str, page_size: int = DRIVE_PAGE_SIZE) -> Dict[str, DriveAttachment]:
    """
    Lists every file in the Drive folder, following nextPageToken until the
    listing is exhausted, keyed by file name minus its extension.
    """
    attachments: Dict[str, DriveAttachment] = {}
    page_token = None
    while True:
        params = {
            "q": f"'{folder_id}' in parents",
            "pageSize": page_size,
            "fields": DRIVE_FIELDS,
        }
        if page_token:
            params["pageToken"] = page_token
        try:
            resp = drive.files().list(**params).execute()
        except HttpError as e:
            raise IOFailureError(f"Unable to retrieve files: {e}") from e

        files = resp.get("files", [])
        if not files:
            log.info("No files found.")
        for f in files:
            attachments[f["name"][:-EXTENSION_LENGTH]] = DriveAttachment.from_drive_file(f)

        page_token = resp.get("nextPageToken")
        if not page_token:
            return attachments


# -----------------------------
# Google Calendar events
# -----------------------------

def clean_display_name(name: str) -> str:
    cut = name.find("(")
    if cut >= 0:
        name = name[:cut]
    return name.strip()


def possessive(name: str) -> str:
    if name.lower().endswith("s"):
        return name + "'"
    return name + "'s"


def ical_uid_for(key: str) -> str:
    return f"villager-birthday-{key}@villager-birthdays".replace(" ", "_")


def build_birthday_event(
    display_name: str,
    birthday: Birthday,
    year: int,
    wiki_link: str,
    time_zone: str = TIME_ZONE,
    ical_uid: Optional[str] = None,
) -> Dict[str, object]:
    """
    All-day events use an *exclusive* end date, so a birthday on March 3 runs
    from March 3 to March 4.
    """
    start = birthday.on(year)
    end = start + timedelta(days=1)
    poss = possessive(clean_display_name(display_name))

    body: Dict[str, object] = {
        "summary": f"{poss} Birthday",
        "description": html.escape(f"It's {poss} birthday today!", quote=False) + "\n" + wiki_link,
        "start": {"date": start.isoformat(), "timeZone": time_zone},
        "end": {"date": end.isoformat(), "timeZone": time_zone},
        "recurrence": ["RRULE:FREQ=YEARLY"],
        "transparency": "transparent",
    }
    if ical_uid:
        body["iCalUID"] = ical_uid
    return body


def find_existing_event(calendar, calendar_id: str, ical_uid: str) -> Optional[Dict[str, object]]:
    """
    Looks the event up by iCalUID, deleted events included: a deleted event
    keeps its iCalUID, so inserting it again would be rejected.
    """
    try:
        items = calendar.events().list(
            calendarId=calendar_id,
            iCalUID=ical_uid,
            showDeleted=True,
        ).execute().get("items", [])
    except HttpError as e:
        raise IOFailureError(f"Unable to look up event {ical_uid}: {e}") from e
    return items[0] if items else None


def add_birthday(
    calendar,
    calendar_id: str,
    settings: Settings,
    entry: RosterEntry,
    birthday: Birthday,
    attachment: Optional[DriveAttachment] = None,
) -> Tuple[str, bool]:
    """
    Inserts the yearly birthday event (then patches the Drive image onto it, if
    there is one). Returns (event id, created); created is False when the event
    was already on the calendar. An event that was deleted from the calendar is
    restored instead of inserted. In dry-run mode nothing is sent and the id is
    DRY_RUN_EVENT_ID.
    """
    ical_uid = None if settings.allow_duplicates else ical_uid_for(entry.key)
    body = build_birthday_event(
        entry.display_name,
        birthday,
        settings.year,
        settings.wiki_link(entry.key),
        settings.time_zone,
        ical_uid,
    )

    if settings.dry_run:
        print(f"[DRY RUN] {body['summary']}: {body['start']['date']} .. {body['end']['date']}"
              + (f" + {attachment.title}" if attachment else ""))
        return DRY_RUN_EVENT_ID, True

    existing = find_existing_event(calendar, calendar_id, ical_uid) if ical_uid else None
    if existing and existing.get("status") != "cancelled":
        log.info("%s is already on the calendar (%s)", body["summary"], existing["id"])
        return existing["id"], False

    if existing:
        event_id = existing["id"]
        restore = {k: v for k, v in body.items() if k != "iCalUID"}
        restore["status"] = "confirmed"
        try:
            calendar.events().patch(calendarId=calendar_id, eventId=event_id, body=restore).execute()
        except HttpError as e:
            raise IOFailureError(f"Unable to restore deleted event {event_id}: {e}") from e
        log.info("Restored deleted event %s for %s", event_id, entry.display_name)
    else:
        try:
            event = calendar.events().insert(calendarId=calendar_id, body=body).execute()
        except HttpError as e:
            raise IOFailureError(f"Unable to add a new event: {e}") from e
        event_id = event["id"]

    if attachment:
        patch = {"attachments": [attachment.to_event_attachment()]}
        try:
            calendar.events().patch(
                calendarId=calendar_id,
                eventId=event_id,
                body=patch,
                supportsAttachments=True,
            ).execute()
        except HttpError as e:
            raise IOFailureError(f"Unable to add attachment {entry.key} to event {event_id}: {e}") from e

    log.info("Created birthday event for %s on %s!", entry.display_name, birthday)
    return event_id, True


# -----------------------------
# Google auth & config files
# -----------------------------

def load_token(token_path: str) -> Optional[Credentials]:
    try:
        return Credentials.from_authorized_user_file(token_path, SCOPES)
    except (OSError, ValueError) as e:
        log.debug("No usable token in %s: %s", token_path, e)
        return None


def get_credentials(credentials_path: str = "credentials.json", token_path: str = "token.json") -> Credentials:
    creds = load_token(token_path)

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as e:
            log.warning("Saved token could not be refreshed: %s", e)
            creds = None
    if not creds or not creds.valid:
        try:
            flow = InstalledAppFlow.from_client_secrets_file(credentials_path, SCOPES)
        except OSError as e:
            raise IOFailureError(f"Unable to read client secret file {credentials_path}: {e}") from e
        creds = flow.run_local_server(port=0)
        print(f"Saving credential file to: {token_path}")
        try:
            with open(token_path, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except OSError as e:
            raise IOFailureError(f"Unable to cache oauth token: {e}") from e

    return creds


def build_services(creds: Credentials):
    calendar = build("calendar", "v3", credentials=creds, cache_discovery=False)
    drive = build("drive", "v3", credentials=creds, cache_discovery=False)
    return calendar, drive


def read_json_id(path: str, field: str) -> str:
    """
    Reads an id out of a small JSON file such as {"calendar_id": "..."}.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise IOFailureError(f"Unable to read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"{path} is not valid JSON: {e}") from e

    value = data.get(field) if isinstance(data, dict) else None
    if not value or not isinstance(value, str):
        raise MalformedInputError(f"{path} has no {field!r}")
    return value


# -----------------------------
# Run driver
# -----------------------------

class Outcome(enum.Enum):
    CREATED = "created"
    EXISTING = "existing"
    NO_BIRTHDAY = "no birthday"
    FAILED = "failed"


@dataclasses.dataclass
class CharacterResult:
    entry: RosterEntry
    outcome: Outcome
    birthday: Optional[Birthday] = None
    event_id: Optional[str] = None
    image_path: Optional[str] = None
    error: Optional[BirthdayError] = None


@dataclasses.dataclass
class RunReport:
    results: List[CharacterResult] = dataclasses.field(default_factory=list)
    aborted: bool = False

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)


class BirthdayImporter:
    """
    Walks the roster: birthday -> image -> calendar event, one villager at a
    time. The first hard failure ends the run (see RunReport.aborted).
    """

    def __init__(
        self,
        settings: Settings,
        calendar,
        calendar_id: str,
        attachments: Dict[str, DriveAttachment],
        downloader: ImageDownloader,
        downloaded: DownloadedSet,
    ) -> None:
        self.settings = settings
        self.calendar = calendar
        self.calendar_id = calendar_id
        self.attachments = attachments
        self.downloader = downloader
        self.downloaded = downloaded

    def run(self, roster: Dict[str, RosterEntry]) -> RunReport:
        report = RunReport()
        count = 0
        for entry in roster.values():
            if not entry.image_name:
                continue

            result = self.process(count, entry)
            report.results.append(result)
            if result.outcome is Outcome.FAILED:
                log.error("Stopping at %s: %s", entry.key, result.error)
                report.aborted = True
                break

            count += 1
            if self.settings.one_run:
                break
        return report

    def process(self, n: int, entry: RosterEntry) -> CharacterResult:
        try:
            birthday = read_birthday(self.settings.page_path(entry.key))
            image_path, self.downloaded = self.downloader.retrieve(entry.key, entry.image_name, self.downloaded)

            print(f"{n}: {entry.display_name} ({entry.key}) - {birthday or ''} - {entry.image_name}")

            if birthday is None or not birthday.well_formed:
                log.info("%s doesn't have a birthday!", entry.display_name)
                return CharacterResult(entry, Outcome.NO_BIRTHDAY, image_path=image_path)

            event_id, created = add_birthday(
                self.calendar,
                self.calendar_id,
                self.settings,
                entry,
                birthday,
                self.attachments.get(entry.key),
            )
        except BirthdayError as e:
            return CharacterResult(entry, Outcome.FAILED, error=e)

        outcome = Outcome.CREATED if created else Outcome.EXISTING
        return CharacterResult(entry, outcome, birthday, event_id, image_path)


# -----------------------------
# Main orchestration
# -----------------------------

def env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def parse_args(argv: Optional[List[str]] = None) -> Settings:
    ap = argparse.ArgumentParser(description="Create yearly Google Calendar events for villager birthdays.")
    ap.add_argument("--root", type=str, default=os.getenv("VILLAGER_ROOT", "."), help="Folder holding the cached <key>.html pages.")
    ap.add_argument("--data", type=str, default=os.getenv("VILLAGER_DATA"), help="Roster file (default: <root>/acVillagerData.txt).")
    ap.add_argument("--images", type=str, default=os.getenv("VILLAGER_IMAGES"), help="Image folder (default: <root>/imgs).")
    ap.add_argument("--credentials", type=str, default=os.getenv("VILLAGER_CREDENTIALS", "credentials.json"), help="OAuth credentials JSON path.")
    ap.add_argument("--token", type=str, default=os.getenv("VILLAGER_TOKEN", "token.json"), help="OAuth token cache path.")
    ap.add_argument("--calendar-file", type=str, default=os.getenv("VILLAGER_CALENDAR_FILE", "calendarid.json"), help='JSON file with {"calendar_id": ...}.')
    ap.add_argument("--folder-file", type=str, default=os.getenv("VILLAGER_FOLDER_FILE", "folderid.json"), help='JSON file with {"folder_id": ...}.')
    ap.add_argument("--link-base", type=str, default=os.getenv("VILLAGER_LINK_BASE", LINK_BASE), help="Wiki page prefix for event links and image downloads.")
    ap.add_argument("--year", type=int, default=int(os.getenv("VILLAGER_YEAR", str(REFERENCE_YEAR))), help="Year of the first occurrence of each event.")
    ap.add_argument("--time-zone", type=str, default=os.getenv("VILLAGER_TIME_ZONE", TIME_ZONE), help="Time zone for the events.")
    ap.add_argument("--dry-run", action="store_true", default=env_flag("VILLAGER_DRY_RUN"), help="Print what would be created, but do not write to Google Calendar.")
    ap.add_argument("--one", action="store_true", default=env_flag("VILLAGER_ONE_RUN"), help="Stop after the first villager (debugging).")
    ap.add_argument("--allow-duplicates", action="store_true", help="Skip the check for events already on the calendar.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = ap.parse_args(argv)

    return Settings(
        root=args.root,
        data_path=args.data or os.path.join(args.root, "acVillagerData.txt"),
        images_dir=args.images or os.path.join(args.root, "imgs"),
        credentials_path=args.credentials,
        token_path=args.token,
        calendar_file=args.calendar_file,
        folder_file=args.folder_file,
        link_base=args.link_base,
        year=args.year,
        time_zone=args.time_zone,
        dry_run=args.dry_run,
        one_run=args.one,
        allow_duplicates=args.allow_duplicates,
        verbose=args.verbose,
    )


def main(argv: Optional[List[str]] = None) -> int:
    settings = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if settings.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        log.info("Loading credentials.")
        creds = get_credentials(settings.credentials_path, settings.token_path)
        calendar, drive = build_services(creds)

        calendar_id = read_json_id(settings.calendar_file, "calendar_id")
        print("Calendar ID:", calendar_id)
        folder_id = read_json_id(settings.folder_file, "folder_id")
        print("Folder ID:", folder_id)
        print(describe_folder(drive, folder_id))

        log.info("Loading attachment images.")
        attachments = load_drive_attachments(drive, folder_id)
        downloaded = DownloadedSet.from_directory(settings.images_dir)

        log.info("Loading villager data.")
        roster = load_roster(settings.data_path)
    except BirthdayError as e:
        log.error("%s", e)
        return 1

    log.info("Handling birthdays.")
    importer = BirthdayImporter(
        settings,
        calendar,
        calendar_id,
        attachments,
        ImageDownloader(settings.images_dir, settings.link_base),
        downloaded,
    )
    report = importer.run(roster)
    if report.aborted:
        return 1

    print()
    print(f"Created: {report.count(Outcome.CREATED)}")
    print(f"Already on calendar: {report.count(Outcome.EXISTING)}")
    print(f"No birthday: {report.count(Outcome.NO_BIRTHDAY)}")
    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
