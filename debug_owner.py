import logging
import sys

from debug_injection import clear_debug_error, set_debug_error
from errors import ClassifiedError, InfrastructureError
from resolver_logic import build_resolver


def _show(label, resolver, name, skip_index):
    try:
        owner = resolver.resolve_owner(name, skip_index=skip_index)
        print(f"{label} ({name}): {owner.to_dict() if owner else None}")
    except ClassifiedError as e:
        data = e.data.to_dict() if e.data else None
        print(f"{label} ({name}): {e.name} - {e} | data={data} timestamp={e.timestamp}")
    except InfrastructureError as e:
        print(f"{label} ({name}) Error: {e}")


def debug_resolve(name, force=None, resolver=None):
    print(f"DEBUG: Trying to resolve owner of {name}")
    resolver = resolver or build_resolver()

    # 1. Chain only
    _show("Chain only", resolver, name, skip_index=True)

    # 2. Chain + subgraph
    _show("With subgraph", resolver, name, skip_index=False)

    # 3. Forced error path
    if force:
        set_debug_error(force)
        try:
            _show(f"Forced {force}", resolver, name, skip_index=False)
        finally:
            clear_debug_error()


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    args = sys.argv[1:]
    if not args:
        print("usage: python debug_owner.py NAME [SubgraphIndexingError|UnknownError]")
        sys.exit(1)
    debug_resolve(args[0], args[1] if len(args) > 1 else None)
