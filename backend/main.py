import os

import uvicorn

if __name__ == "__main__":
    # 开发环境默认热重载，RELOAD=false 关闭
    uvicorn.run(
        "configurator.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "true").lower() == "true",
        log_level="info"
    )
