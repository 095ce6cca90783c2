#!/usr/bin/env python
"""Seed the development database with a demo user and a published site.

Creates one user with a full credit balance and one published project whose
live code is a small landing page, then prints a session token for that user
so the API can be exercised with curl.

Constraints:
- Refuses to run in staging or prod (SITEBUILDER_ENV check)
- Idempotent: existing rows are left untouched
- Never runs automatically (manual invocation only)

Usage:
    pip install -e .
    DATABASE_URL=... AUTH_SECRET=... python scripts/seed_dev.py
"""

import os
import sys
import time
from uuid import UUID

DEV_USER_ID = UUID("00000000-0000-4000-8000-000000000001")
DEV_PROJECT_ID = UUID("00000000-0000-4000-8000-000000000101")
DEV_USER_NAME = "Dev User"
DEV_USER_CREDITS = 100
DEV_PROJECT_NAME = "Demo landing page"
DEV_PROJECT_PROMPT = "A landing page for a neighbourhood bakery"
DEV_PROJECT_CODE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Crumb &amp; Co.</title>
  <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-amber-50 text-stone-800">
  <header class="p-6 bg-amber-200">
    <h1 class="text-3xl font-bold">Crumb &amp; Co.</h1>
  </header>
  <main class="p-6">
    <p class="text-lg">Fresh bread every morning from 7am.</p>
  </main>
</body>
</html>
"""
TOKEN_TTL_SECONDS = 7 * 24 * 3600


def main():
    # 1. Environment check (hard fail in staging/prod)
    env = os.getenv("SITEBUILDER_ENV", "local")
    if env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in SITEBUILDER_ENV={env}")
        sys.exit(1)

    # 2. Settings validate DATABASE_URL and AUTH_SECRET
    from pydantic import ValidationError

    from sitebuilder.config import get_settings

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"ERROR: invalid settings\n{e}")
        sys.exit(1)

    import jwt

    from sitebuilder.db.models import User, Version, WebsiteProject
    from sitebuilder.db.session import session_scope, transaction

    # 3. Idempotent seeding
    with session_scope() as db, transaction(db):
        user_created = db.get(User, DEV_USER_ID) is None
        if user_created:
            db.add(User(id=DEV_USER_ID, name=DEV_USER_NAME, credits=DEV_USER_CREDITS))
            db.flush()

        project_created = db.get(WebsiteProject, DEV_PROJECT_ID) is None
        if project_created:
            project = WebsiteProject(
                id=DEV_PROJECT_ID,
                user_id=DEV_USER_ID,
                name=DEV_PROJECT_NAME,
                initial_prompt=DEV_PROJECT_PROMPT,
                current_code=DEV_PROJECT_CODE,
                is_published=True,
            )
            db.add(project)
            db.flush()
            version = Version(
                project_id=project.id, code=DEV_PROJECT_CODE, description="Initial version"
            )
            db.add(version)
            db.flush()
            project.current_version_index = version.id

    now = int(time.time())
    token = jwt.encode(
        {
            "sub": str(DEV_USER_ID),
            "iss": settings.normalized_issuer,
            "iat": now,
            "exp": now + TOKEN_TTL_SECONDS,
        },
        settings.auth_secret,
        algorithm="HS256",
    )

    # 4. Report
    database_url = settings.database_url
    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"SITEBUILDER_ENV: {env}")
    print()
    print(f"{'✓ Created' if user_created else '• Exists'}: user {DEV_USER_ID}")
    print(f"{'✓ Created' if project_created else '• Exists'}: project {DEV_PROJECT_ID}")
    print()
    print("Session token (valid 7 days):")
    print(f"  curl -H 'Authorization: Bearer {token}' http://localhost:8000/api/user/credits")


if __name__ == "__main__":
    main()
