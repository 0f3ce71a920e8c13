"""
Per-request pipeline: context, stream state, log sink, loader, invoker and materializer.
"""
