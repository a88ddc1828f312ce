import argparse
import getpass

from sqlalchemy.orm import Session

from mindbridge.db.session import SessionLocal
from mindbridge.models.user import User
from mindbridge.services.auth_service import create_user


def create_admin(email: str, password: str) -> User:
    """
    Create an admin account, or promote an existing user to admin.
    """
    db: Session = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()

        if user:
            user.role = "admin"
            db.commit()
            print(f"Promoted {email} to admin")
            return user

        user = create_user(db, email, password, role="admin")
        print(f"Created admin {email} (id={user.id})")
        return user
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or promote a MindBridge admin")
    parser.add_argument("email")
    args = parser.parse_args()

    create_admin(args.email, getpass.getpass("Password: "))
