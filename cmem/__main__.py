#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cmem/__main__.py
================

Entry point for ``python -m cmem``; see :mod:`cmem.main` for commands.
"""

from cmem.main import main

if __name__ == "__main__":
    raise SystemExit(main())
