#!/usr/bin/env python3
"""
허브 캐시 사용 예제

파일 하나를 캐시에 받고, 저장소 리비전 전체를 동기화하는 방법을 보여줍니다.
실행하려면 허브에 접근할 수 있어야 합니다 (비공개 저장소는 HF_TOKEN 필요).
"""

import asyncio

from hubcache import HubDownloader, RepositorySyncException, get_settings
from hubcache.monitoring import get_metrics_summary
from hubcache.utils import format_file_size, setup_logging


async def demo_single_file(downloader: HubDownloader):
    """파일 단위 캐시 데모"""
    print("\n📄 === 파일 단위 캐시 데모 ===")

    pointer = await downloader.ensure_file_cached("openai-community/gpt2", "config.json")
    print(f"   ✅ 스냅샷 포인터: {pointer}")
    print(f"   🔗 blob: {pointer.resolve()} ({format_file_size(pointer.stat().st_size)})")

    # 같은 커밋으로 다시 요청하면 네트워크 요청 없이 바로 반환
    commit = pointer.parent.name
    again = await downloader.ensure_file_cached("openai-community/gpt2", "config.json", commit)
    print(f"   ⚡ 커밋 빠른 경로: {again == pointer}")


async def demo_repository_sync(downloader: HubDownloader):
    """저장소 동기화 데모"""
    print("\n📦 === 저장소 동기화 데모 ===")

    try:
        report = await downloader.synchronize_repository(
            "datasets/nyu-mll/glue", "main", continue_on_error=True
        )
    except RepositorySyncException as e:
        print(f"   ⚠️ 일부 파일 실패: {len(e.failures)}개")
        report = e.report

    print(f"   ✅ 커밋 {report.commit_hash}: {len(report.succeeded)}개 파일 캐시됨")


async def main():
    settings = get_settings()
    setup_logging(settings)

    async with HubDownloader(settings) as downloader:
        await demo_single_file(downloader)
        await demo_repository_sync(downloader)

    print(f"\n📊 메트릭 요약: {get_metrics_summary()}")


if __name__ == "__main__":
    asyncio.run(main())
