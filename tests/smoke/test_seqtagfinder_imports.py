"""Import smoke tests for seqtagfinder modules."""

from __future__ import annotations

import pytest

from tests.smoke.import_helpers import import_module_or_skip

MODULES = [
    "seqtagfinder",
    "seqtagfinder.cli_entry",
    "seqtagfinder.cli.tag_finder",
    "seqtagfinder.config.tag_config",
    "seqtagfinder.config.discover_input_files",
    "seqtagfinder.constants",
    "seqtagfinder.logging_utils",
    "seqtagfinder.optional_imports",
    "seqtagfinder.informatics.bam_io",
    "seqtagfinder.informatics.bam_tagging",
    "seqtagfinder.informatics.batch_channel",
    "seqtagfinder.informatics.match_table",
    "seqtagfinder.informatics.metrics",
    "seqtagfinder.informatics.position_inference",
    "seqtagfinder.informatics.sequence",
    "seqtagfinder.informatics.tagger",
    "seqtagfinder.informatics.whitelist",
]


@pytest.mark.parametrize("module_name", MODULES)
@pytest.mark.smoke
def test_imports(module_name: str) -> None:
    import_module_or_skip(module_name)


@pytest.mark.smoke
def test_cli_group_has_commands() -> None:
    cli_entry = import_module_or_skip("seqtagfinder.cli_entry")
    assert {"tag", "tag-config"} <= set(cli_entry.cli.commands)
