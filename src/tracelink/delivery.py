"""Delivery selection: the set of references a release has to cover.

Format::

    {"program": "My Program", "delivery": "1.0",
     "github_keys": ["myOrg/myRepo#1"], "jira_keys": ["MYJIRAPROJECT-3"]}

Example:
    >>> delivery = load_delivery(Path("delivery.json"))
    >>> report = aggregator.coverage(delivery.references())
    >>> report.uncovered_references
    ['Jira:MYJIRAPROJECT-3']
"""

from __future__ import annotations

from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tracelink.errors import DeliveryFileError
from tracelink.links import TrackerSystem
from tracelink.matcher import parse_reference
from tracelink.models import Reference

logger = structlog.get_logger(__name__)


class Delivery(BaseModel):
    """A named delivery and the tracker keys it contains.

    Attributes:
        program: Program name, spaces removed.
        delivery: Delivery version, spaces removed.
        github_keys: GitHub issue keys (``org/repo#n``).
        jira_keys: Jira issue keys (``PROJECT-n``).
    """

    model_config = ConfigDict(frozen=True)

    program: str = ""
    delivery: str = ""
    github_keys: list[str] = Field(default_factory=list)
    jira_keys: list[str] = Field(default_factory=list)

    @field_validator("program", "delivery")
    @classmethod
    def remove_spaces(cls, value: str) -> str:
        return value.replace(" ", "")

    def references(self) -> list[Reference]:
        """Parsed references, GitHub keys first, in file order.

        Keys that do not parse are logged and left out.
        """
        keyed = [f"{TrackerSystem.GITHUB.value}:{key}" for key in self.github_keys] + [
            f"{TrackerSystem.JIRA.value}:{key}" for key in self.jira_keys
        ]
        references: list[Reference] = []
        for text in keyed:
            try:
                references.append(parse_reference(text))
            except ValueError as e:
                logger.warning("delivery.malformed_key", key=text, reason=str(e))
        return references


def load_delivery(path: Path) -> Delivery:
    """Read and validate a delivery file.

    Raises:
        DeliveryFileError: If the file cannot be read or is invalid.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeliveryFileError(
            f"Cannot read delivery file: {e.strerror or e}",
            {"path": str(path)},
        ) from e

    try:
        return Delivery.model_validate_json(content)
    except ValidationError as e:
        raise DeliveryFileError(
            "Delivery file is not valid",
            {"path": str(path), "errors": e.error_count()},
        ) from e


__all__ = ["Delivery", "load_delivery"]
