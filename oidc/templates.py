"""HTML pages written back to the operator's browser by the callback receiver.

Kept deliberately small: the page is shown once and the listener shuts
down right after writing it.
"""

CALLBACK_PAGE = """<!DOCTYPE html>
<html>
<head><title>prodcert login</title>
<style>
body {{ font-family: sans-serif; display: flex; justify-content: center;
       align-items: center; height: 100vh; margin: 0; background: #f5f5f5; }}
.box {{ background: white; padding: 40px; border-radius: 8px;
        box-shadow: 0 2px 10px rgba(0,0,0,0.1); text-align: center; }}
</style>
</head>
<body><div class="box"><h2>{message}</h2><p>{detail}</p></div></body>
</html>"""

SUCCESS_MESSAGE = "Login complete."
SUCCESS_DETAIL = "You can close this window and return to the terminal."

FAILURE_MESSAGE = "Login failed."
FAILURE_DETAIL = "Check the terminal for details, then close this window."


def render_callback_page(success: bool) -> bytes:
    """Render the acknowledgment page for a processed callback."""
    if success:
        html = CALLBACK_PAGE.format(message=SUCCESS_MESSAGE, detail=SUCCESS_DETAIL)
    else:
        html = CALLBACK_PAGE.format(message=FAILURE_MESSAGE, detail=FAILURE_DETAIL)
    return html.encode("utf-8")
