import sys
import os

from dotenv import load_dotenv

# Add your project directory to the sys.path
project_home = '/home/yourusername/oneflow-contract-sync'
if project_home not in sys.path:
    sys.path.insert(0, project_home)

# Set environment variable for Flask
os.environ['FLASK_ENV'] = 'production'

# Load environment variables from .env before config is read
dotenv_path = os.path.join(project_home, '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)

from app import create_app

application = create_app()
