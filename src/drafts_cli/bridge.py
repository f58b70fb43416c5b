"""
Client for the Drafts app's scripting bridge.

Every operation is a small AppleScript run through ``osascript``. Drafts
answers reads with one record per draft, fields split by the ASCII unit
separator and records by the record separator (tags joined by
``|||``), so draft content may contain tabs and newlines.

Host-side scripts hand results back as JSON in a single success parameter
named ``result``; an absent parameter means "no result".
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from dotenv import load_dotenv

from drafts_cli.config import env_float
from drafts_cli.errors import BridgeError

load_dotenv()

logger = logging.getLogger("drafts_cli")

OSASCRIPT = os.getenv("DRAFTS_OSASCRIPT", "osascript")
DEFAULT_OSASCRIPT_TIMEOUT = 30.0

RESULT_PARAM = "result"
TAG_SEPARATOR = "|||"
FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"
FIELD_COUNT = 11

# AppleScript error -1728: "Can't get <object>" (no such draft)
NO_SUCH_OBJECT = "-1728"


# ─────────────────────────────────────────────────────────────────────────────
# Types
# ─────────────────────────────────────────────────────────────────────────────


class Folder(str, Enum):
    INBOX = "inbox"
    ARCHIVE = "archive"
    TRASH = "trash"


class Filter(str, Enum):
    INBOX = "inbox"
    FLAGGED = "flagged"
    ARCHIVE = "archive"
    TRASH = "trash"
    ALL = "all"


class Sort(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    ACCESSED = "accessed"


@dataclass(frozen=True)
class DraftRecord:
    uuid: str
    content: str = ""
    title: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)
    is_flagged: bool = False
    is_archived: bool = False
    is_trashed: bool = False
    folder: Folder = Folder.INBOX
    created_at: str = ""
    modified_at: str = ""
    permalink: str = ""

    def to_dict(self) -> dict[str, Any]:
        """JSON form, using the host app's camelCase keys."""
        return {
            "uuid": self.uuid,
            "content": self.content,
            "title": self.title,
            "tags": list(self.tags),
            "isFlagged": self.is_flagged,
            "isArchived": self.is_archived,
            "isTrashed": self.is_trashed,
            "folder": self.folder.value,
            "createdAt": self.created_at,
            "modifiedAt": self.modified_at,
            "permalink": self.permalink,
        }

    @property
    def first_line(self) -> str:
        return self.content.split("\n", 1)[0].strip()


def folder_for(is_archived: bool, is_trashed: bool) -> Folder:
    """Trash wins over archive; everything else lives in the inbox."""
    if is_trashed:
        return Folder.TRASH
    if is_archived:
        return Folder.ARCHIVE
    return Folder.INBOX


# ─────────────────────────────────────────────────────────────────────────────
# Success Parameter Contract
# ─────────────────────────────────────────────────────────────────────────────


def encode_query_result(records: list[DraftRecord] | None) -> dict[str, str]:
    """Success parameters for a query: nothing at all when no draft matched."""
    if not records:
        return {}
    return {RESULT_PARAM: json.dumps([r.to_dict() for r in records])}


def encode_get_result(record: DraftRecord | None) -> dict[str, str]:
    if record is None:
        return {}
    return {RESULT_PARAM: json.dumps(record.to_dict())}


def decode_result(params: dict[str, str] | None) -> Any:
    """Parse the ``result`` success parameter, or None when it is absent."""
    if not params or RESULT_PARAM not in params:
        return None
    return json.loads(params[RESULT_PARAM])


# ─────────────────────────────────────────────────────────────────────────────
# AppleScript Plumbing
# ─────────────────────────────────────────────────────────────────────────────


def escape_applescript(text: str) -> str:
    """Escape a string for an AppleScript string literal (backslashes first)."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def tags_to_applescript(tags: list[str] | tuple[str, ...]) -> str:
    if not tags:
        return "{}"
    return "{" + ", ".join(f'"{escape_applescript(t)}"' for t in tags) + "}"


def run_applescript(script: str) -> str:
    """Run an AppleScript and return its trimmed output.

    Raises BridgeError if osascript is missing, times out or fails, and
    ConfigError if DRAFTS_OSASCRIPT_TIMEOUT is not a positive number.
    """
    timeout = env_float("DRAFTS_OSASCRIPT_TIMEOUT", DEFAULT_OSASCRIPT_TIMEOUT)
    logger.debug(f"osascript:\n{script}")
    try:
        proc = subprocess.run(
            [OSASCRIPT, "-e", script],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise BridgeError(f"'{OSASCRIPT}' not found; the Drafts bridge needs macOS") from e
    except subprocess.TimeoutExpired as e:
        raise BridgeError(f"osascript timed out after {timeout:g}s") from e

    if proc.returncode != 0:
        raise BridgeError(f"applescript error: {proc.stderr.strip()}")
    # Only the trailing newline: the separators count as whitespace for strip()
    return proc.stdout.rstrip("\r\n")


# Emits one record for draft `d` into `line_out`
_RECORD_SCRIPT = """\
		set fs to character id 31
		set folder_name to "inbox"
		if isTrashed of d then
			set folder_name to "trash"
		else if isArchived of d then
			set folder_name to "archive"
		end if
		set tag_str to ""
		repeat with t in (tags of d)
			if tag_str is not "" then
				set tag_str to tag_str & "|||"
			end if
			set tag_str to tag_str & t
		end repeat
		set line_out to (id of d) & fs & (title of d) & fs & (content of d) & fs & folder_name & fs & (flagged of d) & fs & (isArchived of d) & fs & (isTrashed of d) & fs & tag_str & fs & ((createdAt of d) as «class isot» as string) & fs & ((modifiedAt of d) as «class isot» as string) & fs & (permalink of d)"""


def parse_draft_line(line: str) -> DraftRecord | None:
    """Parse one record; None if it has too few fields."""
    parts = line.split(FIELD_SEPARATOR)
    if len(parts) < FIELD_COUNT or not parts[0]:
        return None

    tags = tuple(parts[7].split(TAG_SEPARATOR)) if parts[7] else ()
    is_archived = parts[5] == "true"
    is_trashed = parts[6] == "true"
    return DraftRecord(
        uuid=parts[0],
        title=parts[1],
        content=parts[2],
        folder=folder_for(is_archived, is_trashed),
        is_flagged=parts[4] == "true",
        is_archived=is_archived,
        is_trashed=is_trashed,
        tags=tags,
        created_at=parts[8],
        modified_at=parts[9],
        permalink=parts[10],
    )


def has_all_tags(draft_tags: tuple[str, ...] | list[str], required: list[str]) -> bool:
    have = set(draft_tags)
    return all(t in have for t in required)


def has_any_tag(draft_tags: tuple[str, ...] | list[str], excluded: list[str]) -> bool:
    have = set(draft_tags)
    return any(t in have for t in excluded)


# ─────────────────────────────────────────────────────────────────────────────
# Reading Drafts
# ─────────────────────────────────────────────────────────────────────────────


def get_draft(uuid: str) -> DraftRecord | None:
    """Fetch one draft, or None if Drafts has no draft with that UUID."""
    script = f"""tell application "Drafts"
	set d to draft id "{escape_applescript(uuid)}"
{_RECORD_SCRIPT}
	return line_out
end tell"""
    try:
        output = run_applescript(script)
    except BridgeError as e:
        if NO_SUCH_OBJECT in str(e):
            return None
        raise
    return parse_draft_line(output)


def _whose_clause(filter: Filter) -> str:
    if filter is Filter.ALL:
        return ""
    if filter is Filter.FLAGGED:
        return " whose flagged is true and isArchived is false and isTrashed is false"
    return (f" whose isArchived is {str(filter is Filter.ARCHIVE).lower()}"
            f" and isTrashed is {str(filter is Filter.TRASH).lower()}")


def query_drafts(
    text: str = "",
    filter: Filter = Filter.INBOX,
    tags: list[str] | None = None,
    omit_tags: list[str] | None = None,
    sort: Sort = Sort.CREATED,
    descending: bool = False,
    flagged_to_top: bool = False,
) -> list[DraftRecord]:
    """Query drafts in a folder, filtered by text and tags.

    A draft must carry every tag in ``tags`` and none in ``omit_tags``.
    An empty host answer is an empty list, never an error.
    """
    filter = Filter(filter)
    sort = Sort(sort)
    script = f"""tell application "Drafts"
	set output to ""
	repeat with d in (every draft{_whose_clause(filter)})
{_RECORD_SCRIPT}
		if output is "" then
			set output to line_out
		else
			set output to output & (character id 30) & line_out
		end if
	end repeat
	return output
end tell"""

    output = run_applescript(script)
    if not output:
        return []

    needle = text.lower()
    drafts = []
    for line in output.split(RECORD_SEPARATOR):
        d = parse_draft_line(line)
        if d is None:
            continue
        if tags and not has_all_tags(d.tags, tags):
            continue
        if omit_tags and has_any_tag(d.tags, omit_tags):
            continue
        if needle and needle not in d.content.lower():
            continue
        drafts.append(d)

    # The bridge does not expose access times; modified is the closest proxy
    key = "created_at" if sort is Sort.CREATED else "modified_at"
    drafts.sort(key=lambda d: getattr(d, key), reverse=descending)
    if flagged_to_top:
        drafts.sort(key=lambda d: not d.is_flagged)
    logger.debug(f"query_drafts: {len(drafts)} drafts (filter={filter.value})")
    return drafts


def active_uuid() -> str:
    """UUID of the draft currently open in Drafts."""
    return run_applescript('tell application "Drafts"\n\treturn id of current draft\nend tell')


# ─────────────────────────────────────────────────────────────────────────────
# Writing Drafts
# ─────────────────────────────────────────────────────────────────────────────


def create_draft(
    text: str,
    tags: list[str] | None = None,
    archive: bool = False,
    flagged: bool = False,
    action: str | None = None,
) -> str:
    """Create a new draft and return its UUID."""
    folder = "archive" if archive else "inbox"
    script = f"""tell application "Drafts"
	set d to make new draft with properties {{content:"{escape_applescript(text)}", flagged:{str(flagged).lower()}, tags:{tags_to_applescript(tags or [])}}}
	set folder of d to {folder}
	return id of d
end tell"""
    uuid = run_applescript(script)
    if action:
        run_action_on_draft(action, uuid)
    return uuid


def _set_content(uuid: str, expression: str) -> None:
    run_applescript(f"""tell application "Drafts"
	set d to draft id "{escape_applescript(uuid)}"
	set content of d to {expression}
end tell""")


def prepend(uuid: str, text: str, tags: list[str] | None = None, action: str | None = None) -> None:
    _set_content(uuid, f'"{escape_applescript(text)}" & linefeed & (content of d)')
    if tags:
        tag(uuid, tags)
    if action:
        run_action_on_draft(action, uuid)


def append(uuid: str, text: str, tags: list[str] | None = None, action: str | None = None) -> None:
    _set_content(uuid, f'(content of d) & linefeed & "{escape_applescript(text)}"')
    if tags:
        tag(uuid, tags)
    if action:
        run_action_on_draft(action, uuid)


def replace(uuid: str, text: str) -> None:
    _set_content(uuid, f'"{escape_applescript(text)}"')


def _set_flag(uuid: str, prop: str) -> None:
    run_applescript(f"""tell application "Drafts"
	set d to draft id "{escape_applescript(uuid)}"
	set {prop} of d to true
end tell""")


def trash(uuid: str) -> None:
    _set_flag(uuid, "isTrashed")


def archive(uuid: str) -> None:
    _set_flag(uuid, "isArchived")


def tag(uuid: str, tags: list[str]) -> None:
    """Add tags to a draft, skipping ones it already has."""
    if not tags:
        return
    run_applescript(f"""tell application "Drafts"
	set d to draft id "{escape_applescript(uuid)}"
	set existingTags to tags of d
	repeat with t in {tags_to_applescript(tags)}
		if (contents of t) is not in existingTags then
			set end of existingTags to (contents of t)
		end if
	end repeat
	set tags of d to existingTags
end tell""")


def select(uuid: str) -> None:
    """Open a draft in the Drafts editor, making it the active draft."""
    run_applescript(f"""tell application "Drafts"
	open draft id "{escape_applescript(uuid)}"
end tell""")


# ─────────────────────────────────────────────────────────────────────────────
# Actions
# ─────────────────────────────────────────────────────────────────────────────


def _action_script(action: str, draft_ref: str) -> str:
    return f"""	set actionToRun to missing value
	repeat with a in (every action)
		if name of a is "{escape_applescript(action)}" then
			set actionToRun to a
			exit repeat
		end if
	end repeat
	if actionToRun is not missing value then
		perform action actionToRun on draft {draft_ref}
	end if"""


def run_action_on_draft(action: str, uuid: str) -> None:
    run_applescript(f"""tell application "Drafts"
{_action_script(action, f'id "{escape_applescript(uuid)}"')}
end tell""")


def run_action(action: str, text: str) -> str:
    """Run a named action on a fresh draft holding ``text``; return its UUID."""
    return run_applescript(f"""tell application "Drafts"
	set d to make new draft with properties {{content:"{escape_applescript(text)}"}}
{_action_script(action, "d")}
	return id of d
end tell""")
