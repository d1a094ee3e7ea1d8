PACKAGE_VERSION = '0.1.0'                          # version of the client package

# The layout of the persisted access data. Absence of a stored version means the
# installation predates the versioned layout.
STORAGE_VERSION = 1
