#!/usr/bin/env python3
"""
Quick Start - Keep typed settings in a YAML file.

Usage:
    python examples/quick_start.py
"""

import logging
import uuid
from datetime import date

from pathstore import Format, StandardStore, StoreRegistry


def main():
    logging.basicConfig(level=logging.INFO)

    registry = StoreRegistry(".storage")
    settings = registry.register("settings", Format.YAML, factory=StandardStore)

    # Dot paths create the nested structure on write
    settings.set("app.install_id", settings.get("app.install_id", uuid.UUID) or uuid.uuid4())
    settings.set("app.last_run", date.today())
    settings.set("window.size.width", 800)
    settings.set("window.size.height", 600)

    window = settings.section("window.size")
    print(f"Window: {window.get('width', int)}x{window.get('height', int)}")
    print(f"Install id: {settings.get('app.install_id', uuid.UUID)}")
    print()
    print(settings.to_string_as(Format.YAML))

    settings.save()
    print(f"Saved to {settings.path_on_disk}")


if __name__ == "__main__":
    main()
