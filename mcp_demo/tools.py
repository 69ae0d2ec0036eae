"""The fixed tool catalog.

Each tool takes a pydantic input model and returns ``Success``/``Failure``.
The file and directory tools catch ``OSError`` themselves: a missing file is
a reported outcome, not a dispatch failure.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import List, Literal, Optional, Union

import anyio
from anyio import to_thread
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt
from pydantic.alias_generators import to_camel

from mcp_demo.envelope import Failure, InvocationResult, Success
from mcp_demo.registry import ToolRegistry

Number = Union[StrictInt, StrictFloat]

# Asia/Kolkata has no DST, so a fixed offset is exact.
IST = timezone(timedelta(hours=5, minutes=30), "IST")


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------
class AddNumbersInput(WireModel):
    a: Number = Field(description="The first number to add")
    b: Number = Field(description="The second number to add")


class AddNumbersOutput(WireModel):
    result: Number


class CurrentTimeInput(WireModel):
    pass


class CurrentTimeOutput(WireModel):
    iso: str
    human: str


class ReadFileInput(WireModel):
    relative_path: str = Field(description="File path relative to the project root, e.g. 'mcp_demo/server.py'")


class ReadFileOutput(WireModel):
    relative_path: str
    absolute_path: str
    content: Optional[str] = None
    error: Optional[str] = None


class ListDirectoryInput(WireModel):
    relative_path: Optional[str] = Field(
        default=None,
        description="Directory path relative to project root, e.g. 'mcp_demo'. Defaults to '.'",
    )


class DirectoryEntry(WireModel):
    name: str
    type: Literal["file", "directory", "other"]


class ListDirectoryOutput(WireModel):
    directory: str
    entries: List[DirectoryEntry] = Field(default_factory=list)
    error: Optional[str] = None


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def resolve_path(relative_path: str) -> str:
    """Join against the current working directory without following symlinks."""
    return os.path.normpath(os.path.join(os.getcwd(), relative_path))


def format_iso(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"


def format_ist(moment: datetime) -> str:
    """Full date + long time in IST, e.g. ``Monday, 19 October, 2026 at 6:57:12 pm IST``."""
    local = moment.astimezone(IST)
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return (
        f"{local:%A}, {local.day} {local:%B}, {local.year} "
        f"at {hour}:{local:%M:%S} {meridiem} IST"
    )


def classify(entry: os.DirEntry) -> str:
    if entry.is_dir(follow_symlinks=False):
        return "directory"
    if entry.is_file(follow_symlinks=False):
        return "file"
    return "other"


def _scan(directory: str) -> List[DirectoryEntry]:
    with os.scandir(directory) as it:
        return [DirectoryEntry(name=entry.name, type=classify(entry)) for entry in it]


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------
async def add_numbers(args: AddNumbersInput) -> InvocationResult:
    return Success.of(AddNumbersOutput(result=args.a + args.b))


async def current_time_ist(args: CurrentTimeInput) -> InvocationResult:
    now = datetime.now(timezone.utc)
    return Success.of(CurrentTimeOutput(iso=format_iso(now), human=format_ist(now)))


async def read_project_file(args: ReadFileInput) -> InvocationResult:
    absolute_path = resolve_path(args.relative_path)
    context = {"relativePath": args.relative_path, "absolutePath": absolute_path}
    try:
        content = await anyio.Path(absolute_path).read_text(encoding="utf-8", errors="replace")
    except (OSError, ValueError) as e:
        return Failure(str(e), context)
    return Success({**context, "content": content})


async def list_project_directory(args: ListDirectoryInput) -> InvocationResult:
    directory = resolve_path(args.relative_path or ".")
    try:
        entries = await to_thread.run_sync(_scan, directory)
    except (OSError, ValueError) as e:
        return Failure(str(e), {"directory": directory, "entries": []})
    return Success.of(ListDirectoryOutput(directory=directory, entries=entries))


def build_registry() -> ToolRegistry:
    """Register the catalog and seal the registry."""
    registry = ToolRegistry()
    registry.tool(
        "add_numbers",
        title="Addition Tool",
        description="Adds two numbers and returns the result",
        input_model=AddNumbersInput,
        output_model=AddNumbersOutput,
    )(add_numbers)
    registry.tool(
        "current_time_ist",
        title="Current Time in IST",
        description="Returns the current date and time in Asia/Kolkata (IST).",
        input_model=CurrentTimeInput,
        output_model=CurrentTimeOutput,
    )(current_time_ist)
    registry.tool(
        "read_project_file",
        title="Read Project File",
        description="Reads a text file from the current project (relative to the server working directory).",
        input_model=ReadFileInput,
        output_model=ReadFileOutput,
    )(read_project_file)
    registry.tool(
        "list_project_directory",
        title="List Project Directory",
        description="Lists files and folders in a directory relative to the project root (non-recursive).",
        input_model=ListDirectoryInput,
        output_model=ListDirectoryOutput,
    )(list_project_directory)
    return registry.seal()
