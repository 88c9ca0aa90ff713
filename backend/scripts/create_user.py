#!/usr/bin/env python3
"""
Create a login for the Stockroom API.

Usage:
    python scripts/create_user.py <username> <password>
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session

from stockroom.core.security import get_password_hash
from stockroom.db.base import Base
from stockroom.db.session import SessionLocal, engine
from stockroom.models.user import User


def create_user(db: Session, username: str, password: str) -> User:
    """Insert a new active user. Raises ValueError if the name is taken."""
    username = username.strip()
    if not username:
        raise ValueError("Username must not be empty.")
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters.")
    if db.query(User).filter(User.username == username).first():
        raise ValueError(f"User '{username}' already exists.")

    user = User(username=username, password_hash=get_password_hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Stockroom user")
    parser.add_argument("username")
    parser.add_argument("password")
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = create_user(db, args.username, args.password)
    except ValueError as e:
        print(e, file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"User '{user.username}' created successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
