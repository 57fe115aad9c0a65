# File: tests/coverage_report.py
#!/usr/bin/env python3
"""
Generate test coverage report for the Parking Stay Ledger.
Requires: pip install -e .[test]
"""

import sys
from pathlib import Path

import coverage

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(PROJECT_ROOT / "src"))


def generate_coverage_report(fail_under: float = 0.0) -> bool:
    """Run the whole suite under coverage and write console, HTML and XML reports"""

    cov = coverage.Coverage(
        source=['parkledger'],
        omit=['*/tests/*', '*/__pycache__/*']
    )
    cov.start()

    try:
        # Imported after start() so module-level code is measured
        from tests.run_tests import run_all_tests
        result = run_all_tests(verbosity=1)
    finally:
        cov.stop()
        cov.save()

    print("\n" + "=" * 60)
    print("Test Coverage Report")
    print("=" * 60)

    print("\nConsole Report:")
    total = cov.report(show_missing=True)

    print("\nGenerating HTML report...")
    cov.html_report(directory='htmlcov')
    print("HTML report generated in 'htmlcov' directory")

    print("\nGenerating XML report...")
    cov.xml_report(outfile='coverage.xml')
    print("XML report generated as 'coverage.xml'")

    return result.wasSuccessful() and total >= fail_under


if __name__ == "__main__":
    threshold = float(sys.argv[1]) if len(sys.argv) > 1 else 0.0
    sys.exit(0 if generate_coverage_report(threshold) else 1)
