"""FastAPI HTTP server for acroscript form script analysis."""

import logging
import os
import signal
import tempfile
import threading
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .conditions import normalize_toggle_value
from .context import ScriptContext
from .core import ValidationError, defang_value, process

DEFAULT_TIMEOUT = 60

logger = logging.getLogger("acroscript")


def _timeout_handler(signum, frame):
    raise TimeoutError(f"PDF analysis timed out after {DEFAULT_TIMEOUT} seconds")


def _can_alarm() -> bool:
    # Signal handlers can only be installed from the main thread
    return hasattr(signal, "SIGALRM") and threading.current_thread() is threading.main_thread()


class ToggleRequest(BaseModel):
    script: str = ""
    action: str
    value: str | None = None


class MessagesRequest(BaseModel):
    script: str = ""
    action: str


app = FastAPI(
    title="acroscript API",
    description=(
        "Static analysis of PDF form scripts: field toggle mutations, "
        "validation messages and input restrictions, without running any script."
    ),
    version=__version__,
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/analyze")
async def analyze_pdf(file: Annotated[UploadFile, File(description="PDF file to analyze")]):
    """Analyze the form scripts of an uploaded PDF.

    The JSON report contains:
    - File hashes (MD5, SHA1, SHA256)
    - Document script constants and function names
    - Per scripted field: toggle mutations per export value, validation
      messages, keystroke restriction and range limits

    Document text in the response is defanged; field names stay raw.
    """
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    # Save to temp file for processing
    with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as f:
        f.write(content)
        temp_path = f.name

    alarm = _can_alarm()
    try:
        logger.info("Analyzing uploaded PDF: %s", file.filename)
        if alarm:
            signal.signal(signal.SIGALRM, _timeout_handler)
            signal.alarm(DEFAULT_TIMEOUT)
        report = process(temp_path)
        logger.info("Analysis complete for uploaded PDF: %s", file.filename)
        return JSONResponse(content=report)
    except TimeoutError:
        raise HTTPException(
            status_code=504,
            detail=f"PDF analysis timed out after {DEFAULT_TIMEOUT} seconds",
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        if alarm:
            signal.alarm(0)
        os.unlink(temp_path)


@app.post("/toggle")
def toggle(request: ToggleRequest):
    """Field mutations a checkbox/radio action applies for a toggle value.

    A missing value, or the HTML default ``"on"``, means unchecked.
    """
    with ScriptContext(request.script) as context:
        mutations = context.toggle_mutations(request.action, request.value)
    return {
        "value": normalize_toggle_value(request.value),
        "mutations": defang_value([mutation.as_dict() for mutation in mutations]),
    }


@app.post("/messages")
def messages(request: MessagesRequest):
    """Validation messages of the function a blur/validate action calls."""
    with ScriptContext(request.script) as context:
        found = context.validation_messages(request.action)
    return defang_value({"messages": found})


def main(host: str = "0.0.0.0", port: int = 8080):
    """Run the server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
