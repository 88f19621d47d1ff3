#!/usr/bin/env python3
"""
API密钥管理工具

示例：
    # 初始化数据表
    python scripts/manage_api_keys.py init-db

    # 为服务账号签发密钥（默认有效期由 DEFAULT_KEY_EXPIRY_DAYS 决定）
    python scripts/manage_api_keys.py generate acct-1 "billing sync"

    # 签发永不过期的密钥
    python scripts/manage_api_keys.py generate acct-1 "ops" --no-expiry

    # 列出某服务账号的有效密钥
    python scripts/manage_api_keys.py list --owner acct-1 --status active

    # 吊销 / 软删除
    python scripts/manage_api_keys.py revoke <key_id> --actor alice
    python scripts/manage_api_keys.py delete <key_id> --actor alice

    # 查看审计记录（AUDIT_SINK=database 时）
    python scripts/manage_api_keys.py audit <key_id>
"""
from __future__ import annotations

import argparse
import asyncio
from datetime import datetime
from typing import Optional
from uuid import UUID

from keymanager.core.keys.exceptions import KeyManagerError
from keymanager.core.keys.generator import DEFAULT_EXPIRY
from keymanager.core.keys.status import KeyStatus
from keymanager.core.keys.store import KeyListFilter
from keymanager.db.database import AsyncSessionLocal, close_db, init_db
from keymanager.repositories.key_audit_log import KeyAuditLogRepository
from keymanager.services.api_key_service import get_api_key_service


def _parse_expiry(value: Optional[str], no_expiry: bool):
    if no_expiry:
        return None
    if value is None:
        return DEFAULT_EXPIRY
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"无效的过期时间: {value}") from exc


async def generate_key(args: argparse.Namespace) -> None:
    """签发密钥"""
    expires_at = _parse_expiry(args.expires_at, args.no_expiry)
    service = get_api_key_service()
    result = await service.generate_key(
        owner_id=args.owner_id,
        name=args.name,
        description=args.description,
        expires_at=expires_at,
        created_by=args.actor,
    )
    print(f"✅ 已签发密钥 {result.key_id} (owner={result.owner_id})")
    print(f"   过期时间: {result.expires_at.isoformat() if result.expires_at else '永不过期'}")
    print(f"   API Key: {result.raw_key}")
    print("⚠️ 该密钥只显示这一次，请立即妥善保存")


async def list_keys(args: argparse.Namespace) -> None:
    """列出密钥"""
    service = get_api_key_service()
    key_filter = KeyListFilter(
        owner_id=args.owner,
        status=KeyStatus(args.status) if args.status else None,
        include_deleted=args.include_deleted,
    )
    records, total = await service.list_keys(key_filter, page=args.page, limit=args.limit)

    if not records:
        print("⚠️ 未找到符合条件的密钥")
        return

    for record in records:
        expiry = record.expiry_at.isoformat() if record.expiry_at else "never"
        print(
            f"- {record.id} {record.name} [{service.status_of(record).value}] "
            f"owner={record.owner_id} hint={record.key_hint} expires={expiry}"
        )
    print(f"共 {total} 条")


async def revoke_key(args: argparse.Namespace) -> None:
    """吊销密钥"""
    record = await get_api_key_service().revoke_key(args.key_id, actor=args.actor)
    print(f"✅ 已吊销密钥 {record.id}")


async def delete_key(args: argparse.Namespace) -> None:
    """软删除密钥"""
    record = await get_api_key_service().delete_key(args.key_id, actor=args.actor)
    print(f"✅ 已删除密钥 {record.id}")


async def show_audit(args: argparse.Namespace) -> None:
    """查看密钥审计记录"""
    async with AsyncSessionLocal() as session:
        logs = await KeyAuditLogRepository(session).list_by_subject(str(args.key_id), limit=args.limit)

    if not logs:
        print("⚠️ 没有审计记录")
        return

    for log in logs:
        reason = f" reason={log.reason_code}" if log.reason_code else ""
        print(f"- {log.timestamp.isoformat()} {log.action}/{log.outcome}{reason}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="API密钥管理工具")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="创建数据表")

    gen_parser = subparsers.add_parser("generate", help="签发新密钥")
    gen_parser.add_argument("owner_id", help="服务账号ID")
    gen_parser.add_argument("name", help="密钥名称")
    gen_parser.add_argument("--description", default=None)
    gen_parser.add_argument("--expires-at", default=None, help="ISO 8601 过期时间")
    gen_parser.add_argument("--no-expiry", action="store_true", help="永不过期")
    gen_parser.add_argument("--actor", default=None, help="操作者")

    list_parser = subparsers.add_parser("list", help="列出密钥")
    list_parser.add_argument("--owner", default=None)
    list_parser.add_argument("--status", choices=[s.value for s in KeyStatus], default=None)
    list_parser.add_argument("--include-deleted", action="store_true")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--limit", type=int, default=None)

    for command, help_text in (("revoke", "吊销密钥"), ("delete", "软删除密钥")):
        action_parser = subparsers.add_parser(command, help=help_text)
        action_parser.add_argument("key_id", type=UUID)
        action_parser.add_argument("--actor", default=None)

    audit_parser = subparsers.add_parser("audit", help="查看审计记录")
    audit_parser.add_argument("key_id", type=UUID)
    audit_parser.add_argument("--limit", type=int, default=50)

    return parser.parse_args()


async def main() -> None:
    args = parse_args()

    try:
        if args.command == "init-db":
            await init_db()
            print("✅ 数据表已创建")
        elif args.command == "generate":
            await generate_key(args)
        elif args.command == "list":
            await list_keys(args)
        elif args.command == "revoke":
            await revoke_key(args)
        elif args.command == "delete":
            await delete_key(args)
        elif args.command == "audit":
            await show_audit(args)
        else:
            raise ValueError(f"未知命令: {args.command}")
    except (KeyManagerError, ValueError) as exc:
        print(f"❌ {exc}")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
