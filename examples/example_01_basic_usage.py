"""Example 01: Basic Usage - stagekv Fundamentals.

This example demonstrates the fundamental operations:
- Defining models with typed fields and defaults
- Choosing a backend kind through the factory
- Staging create/upsert/update/drop and committing with end()
- Reading records and single fields back
"""

from stagekv import StageConfig, start_storage

# Step 1: Define models
# A field without "default" is required. Defaults may be literals or
# zero-argument callables that produce a fresh value.
storage = start_storage()
storage.define(
    "user",
    {
        "name": {"type": "string"},
        "age": {"type": "number", "default": 0},
        "tags": {"type": "json", "default": list},
    },
)
storage.define(
    "post",
    {
        "title": {"type": "string"},
        "author": {"type": "reference"},
        "published": {"type": "boolean", "default": False},
    },
)


def main():
    # Step 2: Pick a backend. "session" is in-memory; "local" persists to SQLite.
    stage = storage("session", config=StageConfig(namespace="blog", save_default=True))

    # Step 3: Stage a batch and commit it. Nothing touches storage before end().
    stage.model("user").create("alice", {"name": "Alice", "age": 30})
    stage.instance("bob", {"name": "Bob"})
    stage.model("post").create("hello", {"title": "Hello", "author": "alice"})
    stage.end()

    print("alice:", stage.get("user", "alice"))
    print("bob:", stage.get("user", "bob"))

    # Step 4: Partial updates merge into the stored record.
    alice = stage.model("user").instance("alice").property("age", 31).end()
    print("alice after update:", alice)

    # Step 5: Read a single field; property(name) commits and returns the value.
    print("post published?", stage.model("post").instance("hello").property("published"))

    # Step 6: Drop and re-create in one batch; drops are applied first.
    stage.model("user").drop("bob").create("bob", {"name": "Robert"}).end()
    print("bob after re-create:", stage.get("user", "bob"))


if __name__ == "__main__":
    main()
