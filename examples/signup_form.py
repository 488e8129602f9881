"""
Signup form driven without a UI.

Simulates a view layer: each input subscribes to its own field only, the user
types quickly into 'username' (an async availability check runs on every
keystroke), then submits.
"""

import asyncio
import logging

from formstate import create_form

logger = logging.getLogger(__name__)

TAKEN_USERNAMES = {"admin", "root"}


async def username_available(value):
    """Pretend network call: slower for short names, so early keystrokes finish last."""
    await asyncio.sleep(0.05 / max(1, len(value)))
    return {"length": len(value) >= 3, "available": value not in TAKEN_USERNAMES}


def valid_email(value):
    return "@" in value


async def save(values):
    await asyncio.sleep(0.01)
    print(f"saved: {values}")


async def main():
    form = create_form({"username": "", "email": ""}, on_submit=save)

    username = form.field("username", validate=username_available)
    email = form.field("email", validate=valid_email)

    username.subscribe(lambda entry: print(f"  [username] {entry.value!r} -> {entry.validation}"))
    email.subscribe(lambda entry: print(f"  [email]    {entry.value!r} -> {entry.validation}"))

    for prefix in ("a", "ad", "ada", "adal"):
        username.set_value(prefix)
    email.set_value("ada@example.com")
    await form.settle()

    print(f"dirty={form.is_dirty()} valid={form.is_valid()}")
    await form.submit_form()
    print(f"submit_count={form.submit_count} submitting={form.is_submitting}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
