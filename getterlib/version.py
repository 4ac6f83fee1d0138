PRODUCT_NAME = "Getterlib"
VERSION = "v0.1.0"


def get_version() -> str:
    return VERSION


def default_user_agent() -> str:
    # "v0.1.0" -> "Getterlib/0.1.0"
    version = get_version()
    if version.startswith("v"):
        version = version[1:]
    return f"{PRODUCT_NAME}/{version}"
