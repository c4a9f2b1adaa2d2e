#!/usr/bin/env python3
"""統一的檢查腳本，依序執行格式化檢查、靜態分析與單元測試。

用法：
    python run_all_linters.py          # 只檢查
    python run_all_linters.py --fix    # 先以 black / isort 自動修正再檢查
"""

from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).parent
PACKAGES = ["app", "core", "infrastructure", "main.py"]


def run_command(cmd: list[str], description: str) -> bool:
    """執行命令並回傳是否成功，輸出直接顯示。"""
    print(f"\n{'=' * 60}\n{description}: {' '.join(cmd)}\n{'=' * 60}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
    except OSError as e:
        print(f"❌ 執行錯誤: {e}")
        return False
    output = (result.stdout + result.stderr).strip()
    if output:
        print(output)
    ok = result.returncode == 0
    print("✅ 成功" if ok else "❌ 失敗")
    return ok


def main() -> None:
    fix = "--fix" in sys.argv[1:]
    py = sys.executable
    commands: list[tuple[list[str], str]] = []
    if fix:
        commands += [
            ([py, "-m", "black", "."], "Black 格式化"),
            ([py, "-m", "isort", "."], "isort 匯入排序"),
        ]
    commands += [
        ([py, "-m", "black", ".", "--check"], "Black 格式化檢查"),
        ([py, "-m", "isort", ".", "--check-only"], "isort 匯入排序檢查"),
        ([py, "-m", "ruff", "check", "."], "Ruff 靜態檢查"),
        ([py, "-m", "pylint", *PACKAGES], "Pylint 靜態分析"),
        ([py, "-m", "pytest", "-q"], "Pytest 單元測試"),
    ]

    results = [(description, run_command(cmd, description)) for cmd, description in commands]

    print(f"\n{'=' * 60}\n總結報告\n{'=' * 60}")
    for description, ok in results:
        print(f"{description}: {'✅ 通過' if ok else '❌ 失敗'}")
    all_passed = all(ok for _, ok in results)
    print(f"\n整體結果: {'✅ 全部通過' if all_passed else '❌ 有錯誤'}")
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
