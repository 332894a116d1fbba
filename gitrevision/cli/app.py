"""Rendering of versioner results for the command line"""

import logging
import string
from typing import Dict, List, Optional

from gitrevision.versioning import MissingDependencyError, Versioner

FORMAT_FIELDS = ("revision", "versionName", "sha1", "branch", "baseBranch")


def format_fields(template: str) -> List[str]:
    """
    List the placeholders used in a --format template.

    Raises:
        ValueError: If the template is malformed or uses an unknown placeholder
    """
    fields = []
    for _, field_name, _, _ in string.Formatter().parse(template):
        if field_name is None:
            continue
        if field_name not in FORMAT_FIELDS:
            allowed = ", ".join("{" + f + "}" for f in FORMAT_FIELDS)
            raise ValueError(
                f"Unknown placeholder '{{{field_name}}}'. Allowed placeholders: {allowed}"
            )
        fields.append(field_name)
    return fields


class CliApp:
    """
    Writes versioner results to a logger.

    The versioner may be left out for commands that do not need it, like
    printing help; any output method that needs it fails with a
    MissingDependencyError naming it.
    """

    def __init__(self, versioner: Optional[Versioner], logger: logging.Logger):
        if logger is None:
            raise MissingDependencyError("logger")
        self.logger = logger
        self._versioner = versioner

    @property
    def versioner(self) -> Versioner:
        if self._versioner is None:
            raise MissingDependencyError("versioner")
        return self._versioner

    async def print_revision(self):
        revision = await self.versioner.revision()
        version_name = await self.versioner.version_name()
        self.logger.info(f"Revision: {revision}, Version name: {version_name}")

    async def print_format(self, template: str):
        fields = format_fields(template)
        values = {name: await self._field_value(name) for name in fields}
        self.logger.info(template.format(**values))

    async def _field_value(self, name: str) -> str:
        versioner = self.versioner
        if name == "revision":
            return str(await versioner.revision())
        if name == "versionName":
            return await versioner.version_name()
        if name == "sha1":
            return await versioner.sha1() or ""
        if name == "branch":
            return await versioner.head_branch_name() or ""
        return versioner.config.base_branch

    async def print_full(self):
        """Log every value the versioner knows about, one per line."""
        report = await self.full_report()
        width = max(len(key) for key in report)
        lines = [f"{key:<{width}}  {value}" for key, value in report.items()]
        self.logger.info("\n".join(lines))

    async def full_report(self) -> Dict[str, str]:
        versioner = self.versioner
        config = versioner.config
        origin = await versioner.feature_branch_origin()
        return {
            "versionCode": str(await versioner.revision()),
            "versionName": await versioner.version_name(),
            "baseBranch": config.base_branch,
            "current branch": await versioner.head_branch_name() or "(detached)",
            "git revision": config.rev,
            "git sha1": await versioner.sha1() or "(unresolved)",
            "local changes": (await versioner.local_changes()).value,
            "completeFirstOnlyBaseBranchCommitCount": str(
                len(await versioner.all_first_base_branch_commits())
            ),
            "baseBranchCommitCount": str(len(await versioner.base_branch_commits())),
            "baseBranchTimeComponent": str(await versioner.base_branch_time_component()),
            "featureBranchCommitCount": str(
                len(await versioner.feature_branch_commits())
            ),
            "featureBranchTimeComponent": str(
                await versioner.feature_branch_time_component()
            ),
            "featureOrigin": origin.sha1 if origin else "(none)",
            "yearFactor": str(config.year_factor),
            "stopDebounce": str(config.stop_debounce),
        }
