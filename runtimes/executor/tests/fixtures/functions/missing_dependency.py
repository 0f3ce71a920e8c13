import open_runtimes_missing_dependency  # noqa: F401


def main(context):
    return context.res.empty()
