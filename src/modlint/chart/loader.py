#!/usr/bin/env python3
"""
MODLINT CHART LOADER
--------------------
Builds a template bundle from a module directory. Unlike a plain helm
loader it tolerates a missing Chart.yaml: modules may omit it, so a minimal
one is synthesized from the module name.

Author: ModLint Team
Date: 2026-01-16
"""

import logging
import os
import stat
from pathlib import Path
from typing import List, Union

from ruamel.yaml import YAML, YAMLError

from modlint.chart.ignore import IgnoreRules
from modlint.core.errors import ChartLoadError, IrregularFileError, ModuleBuildError
from modlint.core.models import Chart, ChartFile
from modlint.core.values import ValueKind, kind_of, to_plain

logger = logging.getLogger("modlint.chart")

CHART_FILE = "Chart.yaml"
VALUES_FILE = "values.yaml"
UTF8_BOM = b"\xef\xbb\xbf"
SYNTHETIC_CHART_VERSION = "0.2.0"


class ChartLoader:
    """
    Walks a module directory into a Chart. Ignored directories are pruned
    before descending, irregular files abort the load, and every file loses
    its UTF-8 BOM on the way in.
    """

    def load(self, module_name: str, directory: Union[str, Path]) -> Chart:
        topdir = Path(directory).resolve()
        if not topdir.is_dir():
            raise ChartLoadError(f"{topdir} is not a directory", module=module_name, path=str(topdir))

        try:
            rules = IgnoreRules.from_directory(topdir)
            files = self._collect(topdir, rules)
        except ModuleBuildError as e:
            e.module, e.path = module_name, str(topdir)
            raise
        except OSError as e:
            raise ChartLoadError(str(e), module=module_name, path=str(topdir))

        if not any(f.name == CHART_FILE for f in files):
            logger.debug(f"{module_name}: no {CHART_FILE}, synthesizing one")
            files.append(ChartFile(
                name=CHART_FILE,
                data=f"name: {module_name}\nversion: {SYNTHETIC_CHART_VERSION}\n".encode("utf-8"),
            ))

        chart = Chart(
            metadata=self._parse_mapping(files, CHART_FILE, module_name),
            files=files,
            values=self._parse_mapping(files, VALUES_FILE, module_name),
        )
        if not chart.name:
            raise ChartLoadError(f"{CHART_FILE} has no name", module=module_name, path=str(topdir))

        logger.debug(f"{module_name}: loaded {len(files)} files, {len(chart.templates)} templates")
        return chart

    def _collect(self, topdir: Path, rules: IgnoreRules) -> List[ChartFile]:
        files: List[ChartFile] = []

        def _raise(err: OSError):
            raise err

        for root, dirnames, filenames in os.walk(topdir, onerror=_raise, followlinks=True):
            rel_root = Path(root).relative_to(topdir).as_posix()
            prefix = "" if rel_root == "." else rel_root + "/"

            # Pruning in place keeps os.walk out of ignored trees entirely.
            dirnames[:] = sorted(d for d in dirnames if not rules.ignore(prefix + d, True))

            for filename in sorted(filenames):
                name = prefix + filename
                if rules.ignore(name, False):
                    continue

                full = Path(root) / filename
                try:
                    mode = full.stat().st_mode
                except OSError as e:
                    raise ChartLoadError(f"error reading {name}: {e}")
                if not stat.S_ISREG(mode):
                    raise IrregularFileError(str(full))

                try:
                    data = full.read_bytes()
                except OSError as e:
                    raise ChartLoadError(f"error reading {name}: {e}")

                if data.startswith(UTF8_BOM):
                    data = data[len(UTF8_BOM):]
                files.append(ChartFile(name=name, data=data))

        return files

    def _parse_mapping(self, files: List[ChartFile], name: str, module_name: str) -> dict:
        chart_file = next((f for f in files if f.name == name), None)
        if chart_file is None:
            return {}

        try:
            doc = to_plain(YAML(typ="safe").load(chart_file.data.decode("utf-8")))
        except (YAMLError, UnicodeDecodeError, TypeError) as e:
            raise ChartLoadError(f"cannot parse {name}: {e}", module=module_name)

        if doc is None:
            return {}
        if kind_of(doc) is not ValueKind.MAPPING:
            raise ChartLoadError(f"{name} must be a mapping", module=module_name)
        return doc
