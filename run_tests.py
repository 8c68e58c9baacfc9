# run_tests.py
"""
Test runner for the entire application.
Run this file to execute all tests with detailed reporting.
"""
import os
import sys
import django

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')
django.setup()

from django.core.management import call_command
from django.test.utils import get_runner
from django.conf import settings


TEST_APPS = [
    'apps.core',
    'apps.users',
    'apps.businesses',
    'apps.clients',
    'apps.table_config',
]


def run_all_tests(test_apps=None):
    """Run the test suite and return the number of failures"""
    print("=" * 80)
    print("TEST SUITE")
    print("=" * 80)

    TestRunner = get_runner(settings)
    test_runner = TestRunner(verbosity=2, interactive=False)

    failures = test_runner.run_tests(test_apps or TEST_APPS)

    print("=" * 80)
    if failures:
        print(f"TESTS FAILED: {failures} failure(s)")
    else:
        print("ALL TESTS PASSED")
    print("=" * 80)

    return failures


def run_specific_app(app_name):
    """Run tests for a specific app"""
    call_command('test', f'apps.{app_name}', verbosity=2)


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Run tests for the application')
    parser.add_argument(
        '--app',
        type=str,
        help='Run tests for a specific app (e.g., clients, businesses)'
    )
    parser.add_argument(
        '--core',
        action='store_true',
        help='Run only the clients app tests'
    )

    args = parser.parse_args()

    if args.core:
        sys.exit(run_all_tests(['apps.clients']))
    elif args.app:
        run_specific_app(args.app)
    else:
        sys.exit(run_all_tests())
