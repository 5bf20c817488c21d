from __future__ import annotations

from argparse import ArgumentParser
from typing import *

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from uexports import (ArchiveError, ArrayProperty, DecompressionError,
                      ExportFactory, MapProperty, Property, StructProperty,
                      TextProperty, decompress_payload, read_export)
from uexports.compression import METHODS

MAX_UPLOAD_BYTES = 64 * 1024 * 1024
ALLOWED_SUFFIXES = (".uexp", ".bin")

app = FastAPI(title="UE Export Inspector", version="0.1.0")


def _format_prop_value(obj: Property) -> Optional[str]:
    """Return a concise, human-friendly value preview for leaf properties.
    If the property has children (struct fields or array elements), return None.
    """
    if isinstance(obj, StructProperty):
        if obj.raw is not None:
            return f"{obj.struct_type}: {obj.raw.hex(' ')}"
        return None

    if isinstance(obj, ArrayProperty):
        if isinstance(obj.values, (bytes, bytearray)):
            n = len(obj.values)
            preview = bytes(obj.values[:32]).hex(" ")
            more = f" +{n-32}b" if n > 32 else ""
            return f"{n} bytes: {preview}{more}" if n else "0 bytes"
        return None

    if isinstance(obj, MapProperty):
        v = obj.value
        return f"Map<{v['__key_type']}, {v['__value_type']}> raw {len(v['__raw'])} byte(s)"

    if isinstance(obj, TextProperty):
        return f"<Text bytes {len(obj.value)}>"

    val = obj.value
    if isinstance(val, str):
        s = val
        if len(s) > 200:
            s = s[:200] + "…"
        return f'"{s}"'
    return str(val)


def create_node(obj: Property) -> Dict[str, Any]:
    meta: str = ""
    children: List[Dict[str, Any]] = []

    if isinstance(obj, StructProperty):
        meta = f"{obj.struct_type}, {len(obj.fields)} field(s)"
        children = [create_node(f) for f in obj.fields]
    elif isinstance(obj, ArrayProperty):
        meta = f"Array<{obj.inner_type}> x {len(obj)}"
        if not isinstance(obj.values, (bytes, bytearray)):
            children = [create_node(elem) for elem in obj]

    return {
        "name": obj.name,
        "type": obj.type_name,
        "meta": meta,
        "children": children if children else None,
        "value": None if children else _format_prop_value(obj),
    }


@app.get("/api/classes")
def api_classes() -> Dict[str, Any]:
    return {"classes": ExportFactory.class_names(), "compression": list(METHODS)}


@app.post("/api/upload")
async def api_upload(export_class: str = Query(...),
                     compression: str = Query("none"),
                     file: UploadFile = File(...)) -> JSONResponse:
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing filename")
    if not file.filename.lower().endswith(ALLOWED_SUFFIXES):
        raise HTTPException(
            status_code=400, detail=f"Please upload a {' or '.join(ALLOWED_SUFFIXES)} file")
    if compression not in METHODS:
        raise HTTPException(status_code=400, detail=f"Unknown compression {compression!r}")

    try:
        raw = await file.read(MAX_UPLOAD_BYTES + 1)
    finally:
        await file.close()
    if len(raw) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Upload too large")

    try:
        export = read_export(decompress_payload(raw, method=compression), export_class)
    except (ArchiveError, DecompressionError) as e:
        err_type = e.__class__.__name__
        raise HTTPException(
            status_code=400, detail=f"Parse error ({err_type}): {e}")

    return JSONResponse({
        "export": export.describe(),
        "properties": [create_node(p) for p in export.data],
    })


def main() -> None:
    parser = ArgumentParser(prog="uexports_webapp",
                            description="uexports Web App")
    parser.add_argument("--host", default="127.0.0.1",
                        help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000,
                        help="Port to bind (default: 8000)")
    args = parser.parse_args()

    import uvicorn  # imported here so fastapi/uvicorn stay optional unless webapp is used
    uvicorn.run("uexports.webapp:app", host=args.host,
                port=args.port, reload=False, log_level="info")


if __name__ == "__main__":
    main()
