"""
Quick test script to verify installation and basic functionality.
Run this to check if all dependencies are installed correctly.
"""

import importlib
import sys

REQUIRED_MODULES = [
    ('yaml', None),
    ('numpy', None),
    ('trimesh', None),
    ('rtree', "Ray casting will not work without rtree"),
    ('astral', None),
    ('pytz', None),
    ('matplotlib', "Plan snapshots will not work without matplotlib"),
    ('httpx', "Remote model URLs will not work without httpx"),
]

PROJECT_MODULES = [
    ('core', 'SceneClassifier'),
    ('core', 'InsolationCalculator'),
    ('core', 'FieldViewCalculator'),
    ('models', 'HousingUnit'),
    ('importers', 'GLBImporter'),
    ('reports', 'DiagramGenerator'),
    ('worker', 'AnalysisWorker'),
]


def test_imports():
    """Test if all required modules can be imported."""
    print("Testing imports...")

    errors = []
    check = "[OK]"
    cross = "[FAIL]"

    for module_name, note in REQUIRED_MODULES:
        try:
            importlib.import_module(module_name)
            print(f"{check} {module_name}")
        except ImportError as e:
            errors.append(f"{cross} {module_name}: {e}")
            print(f"{cross} {module_name}")
            if note:
                print(f"  Note: {note}")

    # Project modules
    print("\nTesting project modules...")
    for module_name, attribute in PROJECT_MODULES:
        try:
            getattr(importlib.import_module(module_name), attribute)
            print(f"{check} {module_name}.{attribute}")
        except (ImportError, AttributeError) as e:
            errors.append(f"{cross} {module_name}.{attribute}: {e}")
            print(f"{cross} {module_name}.{attribute}")

    return errors


def test_basic_functionality():
    """Test basic calculation functionality."""
    print("\nTesting basic functionality...")

    try:
        from core.sun_position import SolarDirectionSampler

        sampler = SolarDirectionSampler(solar_term='winter_solstice')  # Guangzhou
        samples = sampler.samples()
        noon = samples[len(samples) // 2]

        print(f"[OK] Solar sampling: {len(samples)} samples on {sampler.calculation_date}, "
              f"noon azimuth={noon.azimuth:.1f}deg, elevation={noon.elevation:.1f}deg")
        return True
    except Exception as e:
        print(f"[FAIL] Solar sampling failed: {e}")
        return False


def main():
    """Run all tests."""
    print("=" * 50)
    print("Sunlight & View Analysis Installation Test")
    print("=" * 50)
    print(f"Python version: {sys.version}")
    print()

    # Test imports
    errors = test_imports()

    # Test basic functionality
    func_ok = test_basic_functionality()

    # Summary
    print("\n" + "=" * 50)
    print("Test Summary")
    print("=" * 50)

    if errors:
        print(f"\n[WARNING] Found {len(errors)} import error(s):")
        for error in errors:
            print(f"  {error}")
        print("\nTo fix, run: pip install -e .")
    else:
        print("\n[OK] All imports successful!")

    if func_ok:
        print("[OK] Basic functionality test passed!")
    else:
        print("[WARNING] Basic functionality test failed")

    if not errors and func_ok:
        print("\n[SUCCESS] Installation is complete and working!")
        print("\nYou can now run an analysis:")
        print("  python run_analysis.py model.glb --output results.json")
    else:
        print("\n[WARNING] Please fix the errors above before using the application")

    print("=" * 50)


if __name__ == '__main__':
    main()
