import os

os.environ.setdefault("BABYSTEPS_DATABASE_PATH", "./data/test_babysteps.db")
os.environ.setdefault("BABYSTEPS_JWT_SECRET", "test-secret-for-babysteps-api-suite-0123456789")
