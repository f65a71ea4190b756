# create_admin.py
from crm import create_app, get_services
from crm.errors import InvalidInput
from crm.models.user import ROLE_ADMIN
import getpass

def create_initial_admin():
    app = create_app()

    with app.app_context():
        user_service = get_services().user_service

        print("Create Initial Admin User")
        print("-" * 30)

        if not user_service.is_first_run():
            print("Note: users already exist; an additional admin will be created.")

        first_name = input("Enter admin first name: ")
        last_name = input("Enter admin last name: ")
        email = input("Enter admin email: ")
        password = getpass.getpass("Enter admin password: ")
        confirm_password = getpass.getpass("Confirm admin password: ")

        if password != confirm_password:
            print("Passwords don't match!")
            return

        try:
            user = user_service.create_user(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                role=ROLE_ADMIN
            )
            print(f"\nAdmin user created successfully!")
            print(f"Email: {user.email}")
            print(f"Role: {user.role}")

        except InvalidInput as e:
            print(f"Error creating admin user: {e.message}")

if __name__ == "__main__":
    create_initial_admin()
