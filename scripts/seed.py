"""Populate a development database with users, articles, comments and edges."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timezone, timedelta

from app.database import engine, async_session, Base
from app.models import Article, Comment, Favorite, Follow, User
from app.security import hash_password
from app.services.article_service import join_tags, slugify

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

SEED_PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_articles = 100 if small else 5000
    num_comments_per_article = 2 if small else 5

    print(f"Seeding: {num_users} users, {num_articles} articles, "
          f"~{num_articles * num_comments_per_article} comments")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # One hash for every seeded account; bcrypt is deliberately slow.
    password_hash = hash_password(SEED_PASSWORD)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = User(
                username=f"user_{i:04d}",
                email=f"user_{i:04d}@example.com",
                password_hash=password_hash,
                bio=f"I am test user number {i}. I write about technology.",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users (password: {SEED_PASSWORD})")

        follows = set()
        for user in users:
            for other in random.sample(users, k=min(5, len(users))):
                if other.id != user.id:
                    follows.add((user.id, other.id))
        session.add_all(Follow(follower_id=a, following_id=b) for a, b in follows)
        await session.flush()
        print(f"  Created {len(follows)} follow edges")

        batch_size = 500
        total_comments = 0
        total_favorites = 0
        for batch_start in range(0, num_articles, batch_size):
            batch_end = min(batch_start + batch_size, num_articles)
            articles = []
            for i in range(batch_start, batch_end):
                topic = random.choice(TAGS)
                title = f"Article {i}: How to optimize {topic} applications"
                created = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365))
                article = Article(
                    title=title,
                    slug=slugify(title),
                    description=f"A guide to optimizing {topic} applications for production.",
                    body=f"This is the full content of article {i}. " * 20,
                    tag_list=join_tags(random.sample(TAGS, k=random.randint(1, 4))),
                    created_at=created,
                    updated_at=created,
                    author_id=random.choice(users).id,
                )
                session.add(article)
                articles.append(article)
            await session.flush()

            for article in articles:
                for _ in range(random.randint(1, num_comments_per_article)):
                    commenter = random.choice(users)
                    session.add(Comment(
                        body=f"Great article! Very helpful. Comment by {commenter.username}.",
                        author_id=commenter.id,
                        article_id=article.id,
                    ))
                    total_comments += 1
                for fan in random.sample(users, k=random.randint(0, min(3, len(users)))):
                    session.add(Favorite(user_id=fan.id, article_id=article.id))
                    total_favorites += 1
            await session.flush()

            print(f"  Batch {batch_start}-{batch_end}: articles created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Articles: {num_articles}")
    print(f"  Comments: ~{total_comments}")
    print(f"  Favorites: {total_favorites}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
