from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version('notegraph')
except PackageNotFoundError:
    __version__ = 'dev'
