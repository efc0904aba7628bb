#!/usr/bin/env python
"""
Seed data script for development.

Usage:
    python scripts/seed_data.py

Creates one user per role, a set of bugs across statuses, priorities and
categories, and a few comments. Does nothing if any user already exists.
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import select

from bugtracker.core.security import hash_password
from bugtracker.database import async_session_maker, init_db
from bugtracker.models.bug import Bug, BugCategory, BugPriority, BugSeverity, BugStatus
from bugtracker.models.comment import Comment
from bugtracker.models.user import User, UserRole

USERS = [
    {"name": "Admin User", "email": "admin@example.com", "password": "AdminPass123!", "role": UserRole.ADMIN},
    {"name": "Dana Developer", "email": "dev@example.com", "password": "DevPass123!", "role": UserRole.DEVELOPER},
    {"name": "Devon Second", "email": "dev2@example.com", "password": "DevPass123!", "role": UserRole.DEVELOPER},
    {"name": "Tara Tester", "email": "tester@example.com", "password": "TestPass123!", "role": UserRole.TESTER},
    {"name": "Riley Reporter", "email": "reporter@example.com", "password": "ReportPass123!", "role": UserRole.REPORTER},
]

# (title, description, status, priority, category, severity, reporter, assignee)
BUGS = [
    (
        "Login fails with special characters in password",
        "Passwords containing `<` or `>` make the login endpoint return a 500 error.",
        BugStatus.OPEN, BugPriority.HIGH, BugCategory.BACKEND, BugSeverity.MAJOR,
        "reporter@example.com", "dev@example.com",
    ),
    (
        "Bug list is slow with many records",
        "The bug list takes several seconds to load once there are a few thousand bugs.",
        BugStatus.IN_PROGRESS, BugPriority.MEDIUM, BugCategory.PERFORMANCE, BugSeverity.MAJOR,
        "tester@example.com", "dev@example.com",
    ),
    (
        "Dashboard chart labels overlap",
        "On narrow screens the category chart labels overlap and become unreadable.",
        BugStatus.TESTING, BugPriority.LOW, BugCategory.UI_UX, BugSeverity.MINOR,
        "reporter@example.com", "dev2@example.com",
    ),
    (
        "Stored XSS in comment preview",
        "Script tags in comments were rendered in the preview pane before sanitizing.",
        BugStatus.CLOSED, BugPriority.CRITICAL, BugCategory.SECURITY, BugSeverity.BLOCKER,
        "tester@example.com", "dev2@example.com",
    ),
    (
        "Duplicate rows after migration",
        "Running the latest migration twice creates duplicate category rows.",
        BugStatus.REOPENED, BugPriority.HIGH, BugCategory.DATABASE, BugSeverity.MAJOR,
        "dev@example.com", "dev@example.com",
    ),
    (
        "Profile form does not show validation errors",
        "Submitting an invalid email on the profile page silently fails.",
        BugStatus.OPEN, BugPriority.MEDIUM, BugCategory.FRONTEND, BugSeverity.MINOR,
        "reporter@example.com", None,
    ),
]

COMMENTS = [
    "I can reproduce this locally.",
    "Looks related to the last deployment.",
    "Fix is up for review.",
    "Verified on staging, works for me now.",
]


async def seed_database() -> None:
    """Seed the database with sample data."""
    print("Initializing database...")
    await init_db()

    async with async_session_maker() as session:
        result = await session.execute(select(User.id).limit(1))
        if result.scalar_one_or_none():
            print("Database already seeded. Skipping...")
            return

        print("Creating users...")
        users = {}
        for data in USERS:
            user = User(
                name=data["name"],
                email=data["email"],
                password_hash=hash_password(data["password"]),
                role=data["role"],
            )
            session.add(user)
            users[data["email"]] = user

        await session.flush()

        print("Creating bugs...")
        bugs = []
        for i, (title, description, status, priority, category, severity, reporter, assignee) in enumerate(BUGS):
            bug = Bug(
                title=title,
                description=description,
                status=status,
                priority=priority,
                category=category,
                severity=severity,
                reported_by_id=users[reporter].id,
                assigned_to_id=users[assignee].id if assignee else None,
                tags=[category.value],
                estimated_time=float(2 + i),
                due_date=date.today() + timedelta(days=7 + i * 3) if i % 2 == 0 else None,
            )
            session.add(bug)
            bugs.append(bug)

        await session.flush()

        print("Creating comments...")
        authors = list(users.values())
        for i, bug in enumerate(bugs):
            for j in range(i % 3 + 1):
                session.add(
                    Comment(
                        content=COMMENTS[(i + j) % len(COMMENTS)],
                        bug_id=bug.id,
                        author_id=authors[(i + j) % len(authors)].id,
                    )
                )

        await session.commit()

        print("\nDatabase seeded successfully!")
        print(f"  - {len(USERS)} users, {len(BUGS)} bugs")
        print("\nCredentials:")
        for data in USERS:
            print(f"  {data['role'].value:<10} {data['email']} / {data['password']}")


if __name__ == "__main__":
    asyncio.run(seed_database())
