#!/usr/bin/env python3
"""
Create a realistic roster for load testing the outreach tracker upload.
"""
import pandas as pd
import random
from faker import Faker

CATEGORIES = ['OC', 'BC-A', 'BC-B', 'BC-D', 'SC', 'ST', 'EWS']


def create_outreach_test_data(count=300, output_file='outreach_students_test_data.xlsx', seed=None):
    """Create a roster of entrance-exam students with Indian names and phone numbers."""
    fake = Faker('en_IN')
    rng = random.Random(seed)
    if seed is not None:
        fake.seed_instance(seed)

    ranks = rng.sample(range(1, count * 50), count)
    students_data = []
    for rank in ranks:
        gender = rng.choice(['Male', 'Female'])
        if gender == 'Male':
            first_name = fake.first_name_male()
        else:
            first_name = fake.first_name_female()

        students_data.append({
            'Student Name': f"{first_name} {fake.last_name()}",
            'Contact Number': f"{rng.choice('6789')}{rng.randint(0, 999999999):09d}",
            'EAMCET Rank': rank,
            'Category': rng.choice(CATEGORIES),
        })

    df = pd.DataFrame(students_data)
    df.to_excel(output_file, index=False, engine='openpyxl')

    print(f"Outreach test data created: '{output_file}'")
    print(f"Total Students: {len(df)}")
    print(f"Category Distribution: {df['Category'].value_counts().to_dict()}")

    return output_file, df


if __name__ == "__main__":
    print("Creating outreach test data")
    print("=" * 50)
    output_file, df = create_outreach_test_data()
    print(f"Upload '{output_file}' to test the system")
