import os
from dotenv import load_dotenv

# load .env located at server/.env (relative, robust across machines)
BASE_DIR = os.path.dirname(os.path.dirname(__file__))   # server/
DOTENV_PATH = os.path.join(BASE_DIR, ".env")
load_dotenv(dotenv_path=DOTENV_PATH)

# DeepSeek (OpenAI-compatible chat completions)
# A missing key is not checked here: requests go out with an empty bearer
# token and fail upstream with an auth error.
DEEPSEEK_API_KEY = os.getenv('DEEPSEEK_API_KEY')
DEEPSEEK_BASE_URL = os.getenv('DEEPSEEK_BASE_URL', 'https://api.deepseek.com/v1')
DEEPSEEK_MODEL = os.getenv('DEEPSEEK_MODEL', 'deepseek-chat')
GENERATION_TIMEOUT_SECONDS = float(os.getenv('GENERATION_TIMEOUT_SECONDS', '30'))

# Database
MONGODB_URI = os.getenv('MONGODB_URI')
MONGODB_DB = os.getenv('MONGODB_DB')

# CORS
CORS_ORIGINS = os.getenv('CORS_ORIGINS',
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"
)

# Feature flag: developer routes with sample data
TEMPO = os.getenv('TEMPO', 'false').lower() in ('1', 'true', 'yes')

# Optional JSON snapshot of the current itinerary (survives restarts)
ITINERARY_STORAGE_PATH = os.getenv('ITINERARY_STORAGE_PATH')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
