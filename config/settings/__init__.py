# config/settings/__init__.py
"""
Settings package.
manage.py selects development or production from the DEBUG flag;
tests use config.settings.test.
"""
