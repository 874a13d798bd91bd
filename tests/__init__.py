import os

# Must be set before notestack.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CONTENT_STORE_BACKEND"] = "memory"
os.environ["JWT_SECRET"] = "test-secret"
