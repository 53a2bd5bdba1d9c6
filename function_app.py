"""
Azure Functions entry points — Media Services encode-and-publish workflow.

IngestBlob       blob trigger on ingest/{name}: create assets, upload, submit job
MonitorEncoding  Event Grid trigger: publish the output asset of a finished job

Locally, Event Grid deliveries can be replayed against
http://localhost:7071/runtime/webhooks/EventGrid?functionName=MonitorEncoding
"""
import logging
import posixpath

import azure.functions as func

from mediaflow.encoding import controller
from mediaflow.encoding.schemas import EventEnvelope

logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s: %(message)s")

app = func.FunctionApp()


@app.function_name(name="IngestBlob")
@app.blob_trigger(arg_name="blob", path="ingest/{name}", connection="IngestStorage")
async def ingest_blob(blob: func.InputStream) -> None:
    # The binding reports the name as "<container>/<blob>"
    name = posixpath.basename(blob.name or "")
    await controller.ingest(name, blob.read(), blob.length)


@app.function_name(name="MonitorEncoding")
@app.event_grid_trigger(arg_name="event")
async def monitor_encoding(event: func.EventGridEvent) -> None:
    await controller.monitor(EventEnvelope.from_function_event(event))
