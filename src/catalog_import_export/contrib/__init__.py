"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-02-10
@Docs: Storage integrations.
存储集成。
"""
