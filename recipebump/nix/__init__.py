#
# Copyright (c) 2023 Radiance Technologies, Inc.
#
# This file is part of recipebump.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program. If not, see
# <http://www.gnu.org/licenses/>.
#
"""
Collaborators that query and fetch Nix recipes.
"""
from .evaluator import Evaluator, NixEvaluator, parse_drv_name
from .fetcher import Fetcher, FetchResult, HashMismatch, NixFetcher

__all__ = [
    'Evaluator',
    'FetchResult',
    'Fetcher',
    'HashMismatch',
    'NixEvaluator',
    'NixFetcher',
    'parse_drv_name',
]
