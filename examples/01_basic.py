"""
Basic usage - Profile, relations and statuses
"""
import asyncio
from weibopy import WeiboClient


async def main():
    # Uses ~/.weibopy/config.yaml and the account added as "main"
    async with WeiboClient(account_name="main") as weibo:

        profile = await weibo.profile("2125613987")
        print(f"User: {profile['info']['user']['screen_name']}")

        friends = await weibo.friends("2125613987")
        if friends.get("private"):
            print("Relations are hidden")
        else:
            print(f"Follows {friends['total_number']} users")

        # Walk statuses until the cursor runs out
        since_id = None
        for _ in range(3):
            page = await weibo.statuses("2125613987", since_id)
            for status in page["list"]:
                print(f"  {status.get('created_at')}: {status.get('text_raw', '')[:60]}")
            since_id = page["since_id"] or None
            if since_id is None:
                break


if __name__ == "__main__":
    asyncio.run(main())
