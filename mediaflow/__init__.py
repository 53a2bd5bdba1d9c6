"""mediaflow — encode-and-publish workflow for Azure Media Services."""
