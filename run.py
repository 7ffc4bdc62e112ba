import os
import sys, asyncio
if sys.platform.startswith("win"):
    # boucle compatible AVANT que uvicorn crée la sienne
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "app.asgi:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "dev") == "dev",
    )
