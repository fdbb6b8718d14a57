from core_utils.uvicorn_entry import run

if __name__ == "__main__":
    run("gateway.app:app")
