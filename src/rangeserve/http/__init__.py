# =============================================================================
# Imports
# =============================================================================
from http import HTTPStatus

# =============================================================================
# Globals
# =============================================================================
DEFAULT_SERVER_RESPONSE = 'rangeserve/0.1'

DEFAULT_CONTENT_TYPE = 'application/octet-stream'

DEFAULT_ERROR_CONTENT_TYPE = 'text/html; charset=UTF-8'

DEFAULT_ERROR_MESSAGE = """\
<!DOCTYPE HTML>
<html lang="en">
    <head>
        <meta charset="utf-8">
        <title>Error response</title>
    </head>
    <body>
        <h1>Error response</h1>
        <p>Error code: %(code)d</p>
        <p>Message: %(message)s.</p>
        <p>Error code explanation: %(code)s - %(explain)s.</p>
    </body>
</html>
"""

# Maps status codes to (reason phrase, long description).
RESPONSES = {
    status.value: (status.phrase, status.description)
    for status in HTTPStatus
}

# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #
