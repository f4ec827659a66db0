#!/usr/bin/env python3
"""Validate a webpm package index document (packages.json)."""

import json
import sys

from webpm.repository import validate_index


def main(index_file):
    """Print every problem in the index and exit non-zero if there are any."""
    try:
        with open(index_file, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except (OSError, ValueError) as e:
        print(f'❌ Cannot read {index_file}: {e}')
        return 1

    problems = validate_index(document)
    for problem in problems:
        print(f'❌ {problem} in {index_file}')
    if problems:
        return 1

    print(f'✅ {len(document["packages"])} package(s) OK in {index_file}')
    return 0


if __name__ == '__main__':
    if len(sys.argv) != 2:
        print(f'Usage: {sys.argv[0]} <packages.json>')
        sys.exit(1)

    sys.exit(main(sys.argv[1]))
