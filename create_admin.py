"""
Script to create an admin user directly in the database.
Run this when the bootstrap endpoint is disabled.
"""
import sys

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from delivery_api.admin_cli import main

if __name__ == "__main__":
    sys.exit(main())
