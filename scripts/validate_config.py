#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List, Optional

import yaml

from tickbot_app.config.loader import ConfigLoader
from tickbot_app.config.validation import ConfigValidator, ValidationError


def validate_symbol_config(loader: ConfigLoader, symbol: str) -> List[ValidationError]:
    """Validate the merged configuration for a specific symbol."""
    config = loader.merge_config(symbol)
    return ConfigValidator.validate_config(config)


def configured_symbols(config_dir: Path) -> List[str]:
    """Symbols with overrides in instruments.yaml."""
    instruments_file = config_dir / "instruments.yaml"
    if not instruments_file.exists():
        return []
    with open(instruments_file) as f:
        data = yaml.safe_load(f) or {}
    return sorted((data.get("instruments") or {}).keys())


def main(argv: Optional[List[str]] = None) -> int:
    """Validate every configured symbol, or the symbols given on the command line."""
    argv = sys.argv[1:] if argv is None else argv
    print("🔍 Validating tickbot configuration...")

    loader = ConfigLoader.create()
    symbols = argv or configured_symbols(loader.config_dir) + ["UNKNOWN-SYMBOL"]

    all_valid = True
    for symbol in symbols:
        print(f"\n📊 Validating {symbol}...")
        try:
            errors = validate_symbol_config(loader, symbol)
        except yaml.YAMLError as e:
            print(f"❌ Could not parse instruments.yaml: {e}")
            return 1

        if errors:
            print(f"❌ Found {len(errors)} validation errors:")
            for error in errors:
                print(f"  • {error.field}: {error.message} (value: {error.value})")
            all_valid = False
        else:
            print(f"✅ {symbol} configuration is valid")

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        return 0
    print("\n❌ Configuration validation failed!")
    return 1


if __name__ == "__main__":
    sys.exit(main())
