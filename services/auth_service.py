# services/auth_service.py
# Firebase Authentication is the identity provider; this module only turns
# an ID token into the user id that partitions every table.

from fastapi import Header, HTTPException
from typing import Optional, Dict, Any
import firebase_admin
from firebase_admin import auth, credentials
import os

# Initialize Firebase Admin (do this once on startup)
def initialize_firebase():
    """Initialize Firebase Admin SDK"""
    try:
        # Check if already initialized
        firebase_admin.get_app()
        print("✅ Firebase already initialized")
    except ValueError:
        # Initialize with service account
        cred_path = os.getenv('FIREBASE_CREDENTIALS_PATH', 'firebase-credentials.json')

        if os.path.exists(cred_path):
            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred)
            print("✅ Firebase Admin initialized with credentials file")
        else:
            print("⚠️ Firebase credentials file not found, trying environment variables")
            cred_dict = {
                "type": "service_account",
                "project_id": os.getenv('FIREBASE_PROJECT_ID'),
                "private_key_id": os.getenv('FIREBASE_PRIVATE_KEY_ID'),
                "private_key": os.getenv('FIREBASE_PRIVATE_KEY', '').replace('\\n', '\n'),
                "client_email": os.getenv('FIREBASE_CLIENT_EMAIL'),
                "client_id": os.getenv('FIREBASE_CLIENT_ID'),
                "token_uri": "https://oauth2.googleapis.com/token",
            }

            if cred_dict['project_id']:
                cred = credentials.Certificate(cred_dict)
                firebase_admin.initialize_app(cred)
                print("✅ Firebase Admin initialized with environment variables")
            else:
                print("❌ Firebase credentials not found!")


def verify_user_token(id_token: str) -> Dict[str, Any]:
    """Verify a Firebase ID token and return its claims"""
    claims = auth.verify_id_token(id_token)
    if not claims.get('email_verified'):
        raise ValueError("Email address has not been verified")
    return claims


# FastAPI dependency resolving the signed-in user
async def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """
    Read "Authorization: Bearer <id token>" and return the Firebase uid.
    Users with an unverified email are treated as signed out.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")

    id_token = authorization.split(" ", 1)[1].strip()
    try:
        claims = verify_user_token(id_token)
    except Exception as e:
        print(f"⚠️ Rejected ID token: {e}")
        raise HTTPException(status_code=401, detail="Not authenticated")

    return claims['uid']
