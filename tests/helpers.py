from flipwheel.store import split_path


def nest(path, tree):
    """Wrap `tree` in dicts so it sits at `path`."""
    for segment in reversed(split_path(path)):
        tree = {segment: tree}
    return tree
