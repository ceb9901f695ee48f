import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=3001,
        reload=True,
        # Keep the media directory and local job database out of the reload watcher
        reload_excludes=["media/*", "*.db"],
    )
