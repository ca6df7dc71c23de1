"""Example 02: Error Handling.

This example demonstrates:
- Catching StageError subclasses and reading their code and context
- Partial application when a commit fails midway
- Self-healing reads of corrupt stored records
"""

from stagekv import (
    FieldTypeMismatchError,
    InstanceAlreadyExistError,
    InstanceNotExistError,
    MemoryStorage,
    Stage,
)

MODELS = {"user": {"name": {"type": "string"}, "age": {"type": "number", "default": 0}}}


def main():
    """Run error handling example."""
    backend = MemoryStorage()
    stage = Stage(backend, "demo", models=MODELS)

    try:
        stage.model("user").create("alice", {"name": 42}).end()
    except FieldTypeMismatchError as e:
        print(f"{e.code.value}: {e} (field={e.field}, expected={e.expected})")

    stage.model("user").create("alice", {"name": "Alice"}).end()
    try:
        stage.model("user").create("alice", {"name": "Again"}).end()
    except InstanceAlreadyExistError as e:
        print(f"{e.code.value}: {e.model}/{e.instance}")

    # Creates run before updates, so bob is written before the update fails.
    stage.model("user").create("bob", {"name": "Bob"})
    stage.instance("ghost").property("age", 1)
    try:
        stage.end()
    except InstanceNotExistError as e:
        print(f"{e.code.value}: {e}")
    print("bob survived the failed commit:", stage.get("user", "bob"))

    # A record that no longer decodes reads as absent and is removed.
    backend.set_item(stage.key("user", "carol"), "{broken")
    print("carol:", stage.get("user", "carol"))
    print("raw entry left:", backend.get_item(stage.key("user", "carol")))


if __name__ == "__main__":
    main()
