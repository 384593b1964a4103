import os
import uvicorn
from dotenv import load_dotenv

def main():
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    dotenv_path = os.path.join(base_dir, '.env')
    print(f"Loading env from {dotenv_path}...")
    load_dotenv(dotenv_path)

    db_url = os.environ.get("DATABASE_URL")
    print(f"DATABASE_URL: {db_url[:20]}..." if db_url else "DATABASE_URL: not set, using local SQLite")

    print("Starting admin console at http://0.0.0.0:8000")
    uvicorn.run("admin_console.main:app", host="0.0.0.0", port=8000, reload=False)

if __name__ == "__main__":
    main()
