import logging
import firebase_admin
from firebase_admin import credentials, db, auth, storage
from typing import Optional

from app.config import settings


logger = logging.getLogger(__name__)

# Global Firebase app instance
firebase_app: Optional[firebase_admin.App] = None


def init_firebase():
    """Initialize Firebase Admin SDK."""
    global firebase_app

    if firebase_app is not None:
        return firebase_app

    # Check if Firebase credentials are configured
    if not settings.FIREBASE_PROJECT_ID or not settings.FIREBASE_CLIENT_EMAIL:
        logger.info("Firebase credentials not configured - skipping initialization")
        return None

    # Create credentials from environment variables
    cred_dict = {
        "type": "service_account",
        "project_id": settings.FIREBASE_PROJECT_ID,
        "private_key": settings.FIREBASE_PRIVATE_KEY.replace("\\n", "\n"),
        "client_email": settings.FIREBASE_CLIENT_EMAIL,
        "token_uri": "https://oauth2.googleapis.com/token",
    }

    try:
        cred = credentials.Certificate(cred_dict)
        firebase_app = firebase_admin.initialize_app(
            cred,
            {
                "databaseURL": f"https://{settings.FIREBASE_PROJECT_ID}-default-rtdb.firebaseio.com",
                "storageBucket": settings.FIREBASE_STORAGE_BUCKET
                or f"{settings.FIREBASE_PROJECT_ID}.appspot.com",
            },
        )
        logger.info("Firebase initialized")
        return firebase_app
    except Exception as e:
        logger.error("Firebase initialization failed: %s", e)
        return None


class FirebaseService:
    """
    Mirrors conversations and messages into Firebase Realtime Database
    so mobile clients can listen for inserts, mints custom tokens for them,
    and stores profile photos in Cloud Storage.
    Every call is a no-op when Firebase is not initialized.
    """

    @property
    def enabled(self) -> bool:
        return firebase_app is not None

    def create_chat_room(self, conversation_id: str, user_a_id: str, user_b_id: str) -> None:
        """Create the chat room node for a new conversation."""
        if not self.enabled:
            return
        ref = db.reference(f"chats/{conversation_id}")
        ref.set(
            {
                "metadata": {
                    "created_at": {".sv": "timestamp"},
                    "user_a_id": user_a_id,
                    "user_b_id": user_b_id,
                },
                "messages": {},
            }
        )

    def push_message(self, conversation_id: str, message: dict) -> Optional[str]:
        """Append a message to a chat room. Returns the Firebase key."""
        if not self.enabled:
            return None
        ref = db.reference(f"chats/{conversation_id}/messages")
        message_ref = ref.push(message)
        return message_ref.key

    def get_custom_token(self, user_id: str) -> str:
        """
        Generate a custom Firebase auth token for the user.
        Client uses this to authenticate with Firebase.
        """
        token = auth.create_custom_token(user_id)
        return token.decode("utf-8") if isinstance(token, bytes) else token

    def upload_photo(self, path: str, data: bytes, content_type: str) -> str:
        """Store a file in the default bucket and return its public URL."""
        blob = storage.bucket().blob(path)
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
        return blob.public_url

    def delete_photo(self, url: str) -> bool:
        """
        Delete a file previously returned by upload_photo.
        URLs that point outside the bucket are left alone.
        """
        bucket = storage.bucket()
        prefix = f"https://storage.googleapis.com/{bucket.name}/"
        if not url.startswith(prefix):
            return False
        bucket.blob(url[len(prefix):]).delete()
        return True


# Singleton instance
firebase_service = FirebaseService()
