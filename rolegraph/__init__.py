# -*- coding: utf-8 -*-
"""Location: ./rolegraph/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

RoleGraph: group hierarchy role resolution for catalog-backed RBAC.
"""

__version__ = "0.1.0"
