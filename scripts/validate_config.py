#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List, Optional

from pyramid_app.config.loader import ConfigLoader
from pyramid_app.config.validation import ConfigValidator, ValidationError
from pyramid_app.errors import ConfigurationError


def validate_workout_config(config_dir: Optional[Path] = None) -> List[ValidationError]:
    """Validate defaults merged with workout.yaml from `config_dir`."""
    loader = ConfigLoader.create(config_dir)
    config = loader.merge_config()
    return ConfigValidator.validate_config(config)


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)
    print(f"🔍 Validating Pyramid Push configuration in {loader.config_dir}...")

    all_valid = True

    try:
        errors = validate_workout_config(config_dir)

        if errors:
            print(f"❌ Found {len(errors)} validation errors:")
            for error in errors:
                print(f"  • {error.field}: {error.message} (value: {error.value})")
            all_valid = False
        else:
            print("✅ workout.yaml is valid")

    except ConfigurationError as e:
        print(f"❌ Error reading configuration: {e}")
        all_valid = False

    # Peak bounds that the settings panel offers must all load
    print("\n📋 Testing peak overrides...")
    for peak in (3, 10, 20):
        try:
            config = loader.load({"session": {"default_peak": peak}})
            print(f"✅ peak {peak}: {2 * config.session.default_peak - 1} sets")
        except ConfigurationError as e:
            print(f"❌ peak {peak} rejected: {e}")
            all_valid = False

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
