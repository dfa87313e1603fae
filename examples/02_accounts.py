"""
Account management - QR login and keep-alive
"""
import asyncio
from weibopy import WeiboClient


def show_qrcode(url):
    print(f"Scan with the Weibo app: {url}")


async def main():
    weibo = WeiboClient()

    # First run: log in by scanning the QR code
    if "main" not in weibo.accounts():
        await weibo.add_account("main", show_qrcode)
    print(f"Logged in as uid {await weibo.my_uid('main')}")

    # Sessions stale after about a day; run this from cron for idle accounts
    renewed = await weibo.keep_alive()
    print(f"Renewed: {renewed or 'nothing'}")

    # Transform results on the way out
    screen_name = await weibo.profile(
        "2125613987",
        account_name="main",
        transform=lambda profile: profile["info"]["user"]["screen_name"],
    )
    print(screen_name)

    await weibo.close()


if __name__ == "__main__":
    asyncio.run(main())
