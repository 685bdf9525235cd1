"""CLI 入口模块 -- python -m weekplanner.core <command>

支持的命令：
  init-db             初始化数据库表结构
  export <user_id>    以 JSON 输出用户的规划数据
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        _print_usage()
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "export":
        if len(sys.argv) < 3:
            print("用法: python -m weekplanner.core export <user_id>")
            sys.exit(1)
        asyncio.run(export_planner(sys.argv[2]))
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, export")
        sys.exit(1)


def _print_usage() -> None:
    print("用法: python -m weekplanner.core <command>")
    print("命令:")
    print("  init-db             初始化数据库表结构")
    print("  export <user_id>    以 JSON 输出用户的规划数据")


async def init_database() -> None:
    """创建数据库文件与表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def export_planner(user_id: str) -> None:
    """输出用户规划数据"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        data = await store_group.repository.load_planner_data(user_id)
        print(data.model_dump_json(indent=2))
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
