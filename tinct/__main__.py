# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

import sys

from tinct.cli import main

sys.exit(main())
