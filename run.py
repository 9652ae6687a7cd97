import uvicorn
from nvpn.logging_utility import logger


if __name__=='__main__':
    logger.info("Starting nvpn control API")
    # Local only: anyone reaching this port can toggle the VPN
    uvicorn.run("nvpn.main:app", host="127.0.0.1", port=8000)
