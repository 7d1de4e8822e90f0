import runpy
import traceback


def main():
    try:
        # Equivalent to: python -m eww_notify.cli
        runpy.run_module("eww_notify.cli", run_name="__main__")
    except Exception:
        traceback.print_exc()
        raise SystemExit(1)


if __name__ == "__main__":
    main()
