"""Plan file persistence."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from pyreleaser.errors import MalformedPlanError, PlanNotFoundError
from pyreleaser.logging import get_logger
from pyreleaser.planning.model import Plan

log = get_logger(__name__)

HEADER = "# generated by pyreleaser\n"


class PlanStore:
    """Reads and writes the plan file.

    Output is a pure function of the plan, so saving a freshly loaded plan
    reproduces the file byte for byte.

    Attributes:
        path: Location of the plan file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Plan | None:
        """Load the plan, or None if the file does not exist.

        Raises:
            MalformedPlanError: If the file is not valid TOML or not a valid plan.
        """
        if not self.path.is_file():
            return None
        try:
            data = tomlkit.parse(self.path.read_text(encoding="utf-8")).unwrap()
        except TOMLKitError as e:
            raise MalformedPlanError(self.path, str(e)) from e
        try:
            return Plan.model_validate(data)
        except ValidationError as e:
            raise MalformedPlanError(self.path, str(e)) from e

    def require(self) -> Plan:
        """Load the plan, failing if it does not exist.

        Raises:
            PlanNotFoundError: If the file does not exist.
            MalformedPlanError: If the file cannot be parsed.
        """
        plan = self.load()
        if plan is None:
            raise PlanNotFoundError(self.path)
        return plan

    def save(self, plan: Plan, paths: Mapping[str, str] | None = None) -> None:
        """Write the plan.

        Args:
            plan: Plan to persist.
            paths: Package directory per name, written as a comment above
                each entry.
        """
        self.path.write_text(render_plan(plan, paths), encoding="utf-8")
        log.debug("plan written", path=str(self.path), packages=len(plan.entries))


def _table(values: Mapping[str, Any]) -> Any:
    table = tomlkit.table()
    for key, value in values.items():
        if isinstance(value, list) and value and isinstance(value[0], dict):
            aot = tomlkit.aot()
            for item in value:
                aot.append(_table(item))
            table.add(key, aot)
        else:
            table.add(key, value)
    return table


def render_plan(plan: Plan, paths: Mapping[str, str] | None = None) -> str:
    """Serialize a plan to the plan-file format."""
    paths = paths or {}
    chunks = [HEADER]

    if plan.description:
        chunks.append("\n" + tomlkit.dumps({"description": plan.description}))

    for entry in plan.entries:
        doc = tomlkit.document()
        aot = tomlkit.aot()
        aot.append(_table(entry.to_document()))
        doc.add("package", aot)

        text = tomlkit.dumps(doc).strip("\n") + "\n"
        comment = f"# {paths[entry.name]}\n" if entry.name in paths else ""
        chunks.append("\n" + comment + text)

    return "".join(chunks)
