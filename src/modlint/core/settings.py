#!/usr/bin/env python3
"""
MODLINT SETTINGS
----------------
Run-wide knobs. The CLI builds one from its flags; library callers
construct it directly.

Author: ModLint Team
Date: 2026-01-16
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from modlint.render.renderer import HELM_BIN_ENV


@dataclass
class LintSettings:
    global_root: Optional[str] = None       # directory holding global-hooks/openapi
    values_file: Optional[str] = None       # YAML deep-merged over the composed Values
    helm_bin: str = field(default_factory=lambda: os.environ.get(HELM_BIN_ENV, "helm"))
    helm_timeout: int = 60                  # seconds per `helm template` call
    workers: int = 1                        # 1 builds modules sequentially

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        if self.helm_timeout <= 0:
            raise ValueError(f"helm_timeout must be positive, got {self.helm_timeout}")
