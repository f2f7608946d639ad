"""Wire payloads sent to the remote execution service."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PayloadModel(BaseModel):
    """Base model for outbound request bodies."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with remote field names."""

        return self.model_dump(by_alias=True, exclude_none=True)


class WorkItemArgument(PayloadModel):
    """One URL-backed work item argument."""

    url: str
    verb: str | None = None


class WorkItemPayload(PayloadModel):
    """Body for `POST /workitems`."""

    activity_id: str = Field(alias="activityId")
    arguments: dict[str, WorkItemArgument]


class ActivityParameter(PayloadModel):
    """Declared activity parameter."""

    verb: str
    local_name: str = Field(alias="localName")
    description: str | None = None
    required: bool | None = None
    zip: bool | None = None


class ActivityPayload(PayloadModel):
    """Body for `POST /activities`."""

    id: str
    command_line: list[str] = Field(alias="commandLine")
    parameters: dict[str, ActivityParameter]
    engine: str
    appbundles: list[str]
    description: str | None = None


class AppBundlePayload(PayloadModel):
    """Body for `POST /appbundles`."""

    id: str
    engine: str
    description: str | None = None


class AliasPayload(PayloadModel):
    """Body for `POST .../aliases`."""

    id: str
    version: int


def qualified_id(nickname: str, item_id: str, alias: str) -> str:
    """Return the `<nickname>.<id>+<alias>` reference used by the service."""

    return f"{nickname}.{item_id}+{alias}"


def render_work_item_payload(options: Mapping[str, Any]) -> dict[str, Any]:
    """Default template for single-input/single-output work items.

    Expects ``activityId``, ``inputUrl`` and ``outputUrl`` options.
    """

    payload = WorkItemPayload(
        activity_id=options["activityId"],
        arguments={
            "inputFile": WorkItemArgument(url=options["inputUrl"]),
            "outputFile": WorkItemArgument(url=options["outputUrl"], verb="put"),
        },
    )
    return payload.to_wire()


__all__ = [
    "ActivityParameter",
    "ActivityPayload",
    "AliasPayload",
    "AppBundlePayload",
    "PayloadModel",
    "WorkItemArgument",
    "WorkItemPayload",
    "qualified_id",
    "render_work_item_payload",
]
