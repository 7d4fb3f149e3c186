import logging

from services.processing.worker import get_config, run_worker_service


def main() -> None:
    logging.basicConfig(
        level=get_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_worker_service(enable_listener=True)


if __name__ == "__main__":
    main()
