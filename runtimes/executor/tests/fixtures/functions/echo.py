async def main(context):
    req = context.req
    return context.res.json(
        {
            "method": req.method,
            "scheme": req.scheme,
            "host": req.host,
            "port": req.port,
            "path": req.path,
            "query": req.query,
            "query_string": req.query_string,
            "headers": req.headers,
            "url": req.url,
            "body": req.body_text,
        }
    )
