"""
Create an admin account, or promote an existing user to admin.

Usage:
  python -m app.scripts.create_admin --name "Admin" --email admin@example.com --password secret123
"""
import argparse

from app.database import SessionLocal, Base, engine
from app.models.user import UserRole
from app.schemas.user import RegisterRequest
from app.services.auth_service import AuthService


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        service = AuthService(db)
        user = service.get_by_email(args.email)
        if user:
            user.role = UserRole.ADMIN
            db.commit()
            print(f"User #{user.id} ({user.email}) promoted to admin.")
            return

        user, _ = service.register(
            RegisterRequest(
                name=args.name,
                email=args.email,
                password=args.password,
                password_confirmation=args.password,
            ),
            role=UserRole.ADMIN,
        )
        print(f"Admin user #{user.id} ({user.email}) created.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
