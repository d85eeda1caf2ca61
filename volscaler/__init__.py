import os
from dotenv import load_dotenv, find_dotenv

env_file = os.environ.get("ENV_FILE", ".env")
path = find_dotenv(filename=env_file, usecwd=True)
if path:
    print(f"Loading environment variables from {path}")
    load_dotenv(dotenv_path=path)

__version__ = "0.1.0"
