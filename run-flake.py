#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Checks the package and its tests for style violations.
"""
import os.path
import sys

from inspect import stack
from glob import glob
from flake8.api import legacy as flake8

if __name__ != '__main__':
    raise ImportError('This script should not be imported.')

here = os.path.dirname(os.path.abspath(stack()[0][1]))

rules = flake8.get_style_guide(ignore=[
    'E128',  # A continuation line is under-indented for a visual indentation.
    'E203',  # Colons should not have any space before them.
    'E221',  # Multiple spaces before operator, used to align enumeration members.
    'E701',  # Multiple statements on one line (colon)
    'W503',  # Line break occurred before a binary operator
], max_line_length=140)

files = []
for folder in ('streamsplit', 'test'):
    files.extend(glob(os.path.join(here, folder, '**', '*.py'), recursive=True))

report = rules.check_files(files)
errors = report.total_errors

if not errors:
    print(F'Success! No FLAKE8 violations were found in {len(files)} files.')

sys.exit(min(errors, 0xFF))
